"""Configuration, logging, errors and metrics."""

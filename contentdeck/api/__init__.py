"""HTTP application factory and wiring."""

"""Video lifecycle and schedule slots."""

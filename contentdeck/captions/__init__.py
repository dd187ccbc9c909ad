"""Caption library and AI caption generation."""

"""Plan catalogue and usage accounting."""

"""User accounts, credentials and Facebook settings."""

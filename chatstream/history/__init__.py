"""Message models and request normalization."""

"""ContentDeck: Facebook video scheduling, captions and subscription usage accounting."""

"""SwipeFeed: personalized infinite movie feed engine."""

__version__ = "0.1.0"

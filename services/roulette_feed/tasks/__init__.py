"""
Background tasks: feed client, normalizer and poller
"""

from .feed_client import RouletteFeedClient
from .normalizer import normalize_feed_item
from .spin_poller import SpinPoller, CollectionStats, CollectionResult

__all__ = [
    "RouletteFeedClient",
    "normalize_feed_item",
    "SpinPoller",
    "CollectionStats",
    "CollectionResult",
]

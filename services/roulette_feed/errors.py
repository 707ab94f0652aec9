"""
Roulette Feed - Error Types
"""

from typing import Optional


class RouletteFeedError(Exception):
    """Base class for every error raised by the service"""


class FetchError(RouletteFeedError):
    """Transport failure or non-success status from the external feed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(RouletteFeedError):
    """Feed payload does not have the expected shape"""


class PersistenceError(RouletteFeedError):
    """Snapshot document could not be written"""


class SubscriberSendError(RouletteFeedError):
    """A message could not be delivered to one subscriber"""

    def __init__(self, connection_id: str, reason: str):
        super().__init__(f"send to {connection_id} failed: {reason}")
        self.connection_id = connection_id
        self.reason = reason

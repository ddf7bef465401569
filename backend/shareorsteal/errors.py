"""Exceptions raised by the matchmaking services.

Socket handlers turn a ``ProtocolError`` into an ``error`` event for the
offending sender only. Nothing here is fatal to the process.
"""


class MatchmakingError(Exception):
    """Base exception for the matchmaking package."""
    pass


class ProtocolError(MatchmakingError):
    """An action that is malformed or out of context for the sender."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict:
        return {'message': self.message}

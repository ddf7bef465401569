"""Pairing and match lifecycle for Share or Steal rounds."""

from .engine import Match, MatchEngine, Participant, REQUEUE_REASON
from .outcome import Outcome, resolve
from .queues import JoinResult, LocationQueueManager
from .registry import Connection, ConnectionRegistry
from .timers import BackgroundScheduler, ManualScheduler, TimerHandle

__all__ = (
    "BackgroundScheduler",
    "Connection",
    "ConnectionRegistry",
    "JoinResult",
    "LocationQueueManager",
    "ManualScheduler",
    "Match",
    "MatchEngine",
    "Outcome",
    "Participant",
    "REQUEUE_REASON",
    "TimerHandle",
    "resolve",
)

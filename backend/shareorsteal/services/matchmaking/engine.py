import logging
import threading
import uuid
from typing import Any, Dict, List, Optional, Tuple

from shareorsteal.errors import ProtocolError
from .outcome import STEAL, is_decision, resolve
from .queues import JoinResult, LocationQueueManager
from .registry import ConnectionRegistry

REQUEUE_REASON = 'Opponent disconnected'

Outbox = List[Tuple[str, str, Dict[str, Any]]]


class Participant:
    def __init__(self, connection_id: str, name: str, device_id: Optional[str] = None):
        self.id = connection_id
        self.name = name
        self.device_id = device_id
        self.choice: Optional[str] = None


class Match:
    """One active round between two participants at the same location."""

    def __init__(self, match_id: str, location_id: str, a: Participant, b: Participant,
                 deadline: int):
        self.id = match_id
        self.location_id = location_id
        self.a = a
        self.b = b
        self.deadline = deadline
        self.finished = False
        self.cancelled = False
        self.timer = None

    @property
    def state(self) -> str:
        if self.finished:
            return 'finished'
        if self.cancelled:
            return 'cancelled'
        return 'active'

    def side_of(self, connection_id: str) -> Optional[Participant]:
        if connection_id == self.a.id:
            return self.a
        if connection_id == self.b.id:
            return self.b
        return None

    def opponent_of(self, connection_id: str) -> Optional[Participant]:
        if connection_id == self.a.id:
            return self.b
        if connection_id == self.b.id:
            return self.a
        return None


class MatchEngine:
    """Owns the live match set and drives each match to finish or cancel.

    Every mutating entry point (join, submit, disconnect, timer fire) runs
    under one re-entrant lock. Outbound events are queued while the lock is
    held and delivered after release. The eligibility gate is told about
    finished rounds after release too, and its failures are only logged.
    """

    def __init__(self, registry: ConnectionRegistry, queues: LocationQueueManager,
                 scheduler, gate=None, logger=None,
                 decision_window_ms: int = 20000, grace_ms: int = 250,
                 default_player_name: str = 'Player', prize_code_length: int = 6,
                 enforce_daily_limit: bool = False):
        self.registry = registry
        self.queues = queues
        self.scheduler = scheduler
        self.gate = gate
        self.logger = logger or logging.getLogger(__name__)
        self.decision_window_ms = decision_window_ms
        self.grace_ms = grace_ms
        self.default_player_name = default_player_name
        self.prize_code_length = prize_code_length
        self.enforce_daily_limit = enforce_daily_limit
        self._matches: Dict[str, Match] = {}
        self._lock = threading.RLock()

    # ---- Connection lifecycle ----

    def connect(self, connection_id: str, device_id: Optional[str] = None) -> None:
        self.registry.register(connection_id, device_id=device_id)

    def disconnect(self, connection_id: str) -> Optional[Match]:
        """Purge a connection from the registry, its queue and its match.

        Returns the cancelled match, if there was one.
        """
        outbox: Outbox = []
        with self._lock:
            self.registry.remove(connection_id)
            location_id = self.queues.location_of(connection_id)
            if location_id is not None:
                self.queues.remove_from_queue(location_id, connection_id)
                self.logger.info(f"[dequeued] conn={connection_id} location={location_id}")
            match = self._active_match_of(connection_id)
            if match is not None:
                self._cancel(match, connection_id, outbox)
        self._flush(outbox)
        return match

    # ---- Queueing ----

    def join_location(self, connection_id: str, location_id, player_name=None) -> JoinResult:
        if not isinstance(location_id, str) or not location_id.strip():
            raise ProtocolError('locationId is required')
        name = player_name.strip() if isinstance(player_name, str) else ''
        name = name or self.default_player_name
        if self.enforce_daily_limit and not self._may_play(connection_id):
            raise ProtocolError('Already played today')

        outbox: Outbox = []
        with self._lock:
            if self._active_match_of(connection_id) is not None:
                raise ProtocolError('Already in a match')
            result = self.queues.join_or_pair(connection_id, location_id, name)
            self._admit(connection_id, location_id, result, outbox)
            if not result.paired:
                outbox.append((connection_id, 'queued', {'position': result.position}))
        self._flush(outbox)
        return result

    def _admit(self, connection_id: str, location_id: str, result: JoinResult, outbox: Outbox) -> None:
        if result.stale_partner_id:
            self.logger.info(
                f"[stale-partner] location={location_id} discarded={result.stale_partner_id} conn={connection_id}"
            )
        if result.paired:
            self.logger.info(f"[paired] location={location_id} a={result.partner_id} b={connection_id}")
            self._create_match(result.partner_id, connection_id, location_id, outbox)
        else:
            self.logger.info(f"[queued] location={location_id} conn={connection_id} position={result.position}")

    # ---- Match lifecycle ----

    def _participant(self, connection_id: str) -> Participant:
        conn = self.registry.get(connection_id)
        name = (conn.display_name if conn else None) or self.default_player_name
        return Participant(connection_id, name, device_id=conn.device_id if conn else None)

    def _create_match(self, a_id: str, b_id: str, location_id: str, outbox: Outbox) -> Match:
        a = self._participant(a_id)
        b = self._participant(b_id)
        deadline = self.scheduler.now_ms() + self.decision_window_ms
        match = Match(str(uuid.uuid4()), location_id, a, b, deadline)
        self._matches[match.id] = match
        match.timer = self.scheduler.call_later(
            (self.decision_window_ms + self.grace_ms) / 1000.0, self._on_deadline, match.id
        )
        outbox.append((a.id, 'match_found', {
            'matchId': match.id,
            'opponent': {'id': b.id, 'name': b.name},
            'decisionDeadline': deadline,
        }))
        outbox.append((b.id, 'match_found', {
            'matchId': match.id,
            'opponent': {'id': a.id, 'name': a.name},
            'decisionDeadline': deadline,
        }))
        self.logger.info(f"[match-created] match={match.id} location={location_id} a={a.id} b={b.id} deadline={deadline}")
        return match

    def submit_choice(self, connection_id: str, match_id, choice) -> bool:
        """Record a decision. Returns False when the value is illegal and was dropped."""
        if not is_decision(choice):
            return False
        outbox: Outbox = []
        with self._lock:
            match = self._matches.get(match_id) if isinstance(match_id, str) else None
            if match is None:
                raise ProtocolError('Match not found')
            side = match.side_of(connection_id)
            if side is None:
                raise ProtocolError('Not part of this match')
            side.choice = choice
            self.logger.info(f"[choice] match={match.id} conn={connection_id}")
            outbox.append((connection_id, 'choice_recorded', {'matchId': match.id}))
            finished = self._finalize_check(match.id, outbox)
        self._flush(outbox)
        if finished is not None:
            self._record_plays(finished)
        return True

    def finalize_check(self, match_id: str) -> Optional[Match]:
        """Finish the match if both sides are decided, counting expired sides as steal.

        A no-op for a missing or already finished match.
        """
        outbox: Outbox = []
        with self._lock:
            finished = self._finalize_check(match_id, outbox)
        self._flush(outbox)
        if finished is not None:
            self._record_plays(finished)
        return finished

    def _on_deadline(self, match_id: str) -> None:
        self.logger.info(f"[timer-fire] match={match_id} live={match_id in self._matches}")
        self.finalize_check(match_id)

    def _finalize_check(self, match_id: str, outbox: Outbox) -> Optional[Match]:
        match = self._matches.get(match_id)
        if match is None or match.finished or match.cancelled:
            return None
        expired = self.scheduler.now_ms() > match.deadline
        choice_a = match.a.choice or (STEAL if expired else None)
        choice_b = match.b.choice or (STEAL if expired else None)
        if not (choice_a and choice_b):
            return None

        match.finished = True
        if match.timer is not None:
            match.timer.cancel()
        outcome = resolve(choice_a, choice_b, code_length=self.prize_code_length)
        outbox.append((match.a.id, 'result', {
            'matchId': match.id,
            'yourChoice': choice_a,
            'theirChoice': choice_b,
            'yourPrizeCode': outcome.token_a,
        }))
        outbox.append((match.b.id, 'result', {
            'matchId': match.id,
            'yourChoice': choice_b,
            'theirChoice': choice_a,
            'yourPrizeCode': outcome.token_b,
        }))
        del self._matches[match.id]
        self.logger.info(
            f"[match-finished] match={match.id} outcome={outcome.category} a={choice_a} b={choice_b} expired={expired}"
        )
        return match

    def _cancel(self, match: Match, leaver_id: str, outbox: Outbox) -> None:
        match.cancelled = True
        if match.timer is not None:
            match.timer.cancel()
        self._matches.pop(match.id, None)
        self.logger.info(f"[match-cancelled] match={match.id} leaver={leaver_id}")

        survivor = match.opponent_of(leaver_id)
        if survivor is None or not self.registry.is_live(survivor.id):
            return
        outbox.append((survivor.id, 'requeue', {'reason': REQUEUE_REASON}))
        result = self.queues.requeue(match.location_id, survivor.id)
        self.logger.info(f"[requeue] match={match.id} conn={survivor.id} paired={result.paired}")
        self._admit(survivor.id, match.location_id, result, outbox)

    # ---- Eligibility gate ----

    def _may_play(self, connection_id: str) -> bool:
        conn = self.registry.get(connection_id)
        if self.gate is None or conn is None or not conn.device_id:
            return True
        try:
            return self.gate.may_play(conn.device_id)
        except Exception:
            self.logger.exception(f"[gate-error] may_play conn={connection_id}")
            return True

    def _record_plays(self, match: Match) -> None:
        if self.gate is None:
            return
        for participant in (match.a, match.b):
            if not participant.device_id:
                continue
            try:
                self.gate.record_played(participant.device_id)
            except Exception:
                self.logger.exception(f"[gate-error] record_played match={match.id} conn={participant.id}")

    # ---- Queries ----

    def get_match(self, match_id: str) -> Optional[Match]:
        with self._lock:
            return self._matches.get(match_id)

    def active_matches(self) -> List[Match]:
        with self._lock:
            return list(self._matches.values())

    def match_for(self, connection_id: str) -> Optional[Match]:
        with self._lock:
            return self._active_match_of(connection_id)

    def _active_match_of(self, connection_id: str) -> Optional[Match]:
        for match in self._matches.values():
            if not match.finished and match.side_of(connection_id) is not None:
                return match
        return None

    def _flush(self, outbox: Outbox) -> None:
        for connection_id, event, payload in outbox:
            self.registry.deliver(connection_id, event, payload)

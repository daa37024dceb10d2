"""Debate session state machine: creation, turn scoring, victory, expiry.

Sessions live in memory only. Ended sessions are kept for a grace window so
late reads still resolve, then purged the next time the store is touched or
the periodic cleanup runs.
"""

import asyncio
import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

from config.config_loader import DebateConfig, PromptsConfig
from debatebot.completion import CompletionClient
from debatebot.generator import ResponseGenerator
from debatebot.models import DebateSession, DebateStatus, SessionStats
from debatebot.scoring import matching_rule

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DuplicateSession(Exception):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session already exists: {session_id}")


class SessionNotFound(Exception):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"No session for: {session_id}")


class SessionStore:
    """Keyed in-memory store with clock-driven expiry of ended sessions."""

    def __init__(self, grace_period_sec: float, clock: Clock = _utcnow) -> None:
        self._sessions: dict[str, DebateSession] = {}
        self._grace = timedelta(seconds=grace_period_sec)
        self._clock = clock

    def __contains__(self, session_id: str) -> bool:
        return self.get(session_id) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def add(self, session: DebateSession) -> None:
        if session.session_id in self:
            raise DuplicateSession(session.session_id)
        self._sessions[session.session_id] = session

    def get(self, session_id: str) -> DebateSession | None:
        self.purge_expired()
        return self._sessions.get(session_id)

    def values(self) -> Iterator[DebateSession]:
        return iter(list(self._sessions.values()))

    def mark_ended(self, session: DebateSession) -> None:
        session.status = DebateStatus.ENDED
        if session.ended_at is None:
            session.ended_at = self._clock()

    def purge_expired(self) -> int:
        """Drop ended sessions whose grace window has passed. Returns how many."""
        cutoff = self._clock() - self._grace
        expired = [
            sid for sid, s in self._sessions.items()
            if s.status is DebateStatus.ENDED and s.ended_at is not None and s.ended_at <= cutoff
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug("Purged %d expired sessions", len(expired))
        return len(expired)


class DebateManager:
    """Owns every DebateSession and is the only code that mutates one."""

    def __init__(
        self,
        generator: ResponseGenerator,
        client: CompletionClient,
        config: DebateConfig,
        prompts: PromptsConfig,
        clock: Clock = _utcnow,
    ) -> None:
        self._generator = generator
        self._client = client
        self._config = config
        self._prompts = prompts
        self._clock = clock
        self._store = SessionStore(config.grace_period_sec, clock)
        self._locks: dict[str, asyncio.Lock] = {}

    def create_session(
        self,
        session_id: str,
        participant_id: str,
        subject: str,
        participant_name: str = "",
    ) -> DebateSession:
        now = self._clock()
        session = DebateSession(
            session_id=session_id,
            participant_id=participant_id,
            participant_name=participant_name,
            subject=subject,
            created_at=now,
            last_activity_at=now,
        )
        self._store.add(session)
        logger.info("Debate started: session=%s subject=%r", session_id, subject)
        return session

    def get_session(self, session_id: str) -> DebateSession | None:
        return self._store.get(session_id)

    def require_session(self, session_id: str) -> DebateSession:
        session = self._store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def end_session(self, session_id: str) -> None:
        """Mark the session ended; it is purged once the grace window passes."""
        session = self.require_session(session_id)
        self._store.mark_ended(session)
        self._locks.pop(session_id, None)
        stats = self.session_stats(session_id)
        logger.info(
            "Debate ended: session=%s fallacies=%d turns=%d duration=%.0fs",
            session_id,
            session.fallacy_count,
            stats.message_count if stats else 0,
            stats.duration_sec if stats else 0.0,
        )

    def get_active_sessions(self) -> Iterator[DebateSession]:
        return (s for s in self._store.values() if s.status is DebateStatus.ACTIVE)

    def purge_expired(self) -> int:
        return self._store.purge_expired()

    def is_disengaged(self, session: DebateSession) -> bool:
        return session.inactivity_streak >= self._config.inactivity_threshold

    def session_stats(self, session_id: str) -> SessionStats | None:
        session = self._store.get(session_id)
        if session is None:
            return None
        return SessionStats(
            subject=session.subject,
            message_count=len(session.transcript),
            fallacies_detected=session.fallacy_count,
            inactivity_streak=session.inactivity_streak,
            status=session.status,
            duration_sec=(self._clock() - session.created_at).total_seconds(),
        )

    async def process_turn(
        self,
        session: DebateSession,
        opponent_message: str | None,
        is_opening: bool = False,
        external_history: list[dict[str, Any]] | None = None,
    ) -> str:
        """Score the opponent's message and produce the bot's reply.

        Turns for the same session are serialized so two messages racing in
        cannot interleave their counter updates.
        """
        lock = self._locks.setdefault(session.session_id, asyncio.Lock())
        async with lock:
            return await self._process_turn(session, opponent_message, is_opening, external_history)

    async def _process_turn(
        self,
        session: DebateSession,
        opponent_message: str | None,
        is_opening: bool,
        external_history: list[dict[str, Any]] | None,
    ) -> str:
        session.last_activity_at = self._clock()

        if is_opening:
            reply = await self._generator.generate_opening(session.subject)
            self._append(session, {"role": "assistant", "content": reply})
            return reply

        message = opponent_message or ""

        rule = matching_rule(message, self._config.min_message_length)
        if rule is not None:
            session.inactivity_streak += 1
            logger.info(
                "Non-substantive reply (%s): session=%s streak=%d",
                rule, session.session_id, session.inactivity_streak,
            )
        else:
            session.inactivity_streak = 0

        verdict = await self._client.analyze(message)
        if verdict is not None and not self._is_clean_verdict(verdict):
            session.fallacy_count += 1
            logger.info("Fallacy detected: session=%s count=%d", session.session_id, session.fallacy_count)

        if session.fallacy_count >= self._config.fallacy_threshold and session.status is DebateStatus.ACTIVE:
            session.status = DebateStatus.WON
            logger.info("Fallacy threshold reached: session=%s", session.session_id)

        opponent_turn = {"role": "user", "content": message}
        if external_history:
            transcript = [{"role": m["role"], "content": m["content"]} for m in external_history]
        else:
            transcript = [*session.transcript, opponent_turn]

        reply = await self._generator.generate_turn(transcript, session.subject)

        marker = self._prompts.victory_marker
        if marker in reply:
            reply = reply.replace(marker, "").strip()
            if session.status is DebateStatus.ACTIVE:
                session.status = DebateStatus.WON
                logger.info("Victory declared by model: session=%s", session.session_id)

        self._append(session, opponent_turn, {"role": "assistant", "content": reply})
        return reply

    def _is_clean_verdict(self, verdict: str) -> bool:
        return self._prompts.no_fallacy_sentinel.lower() in verdict.lower()

    def _append(self, session: DebateSession, *turns: dict[str, Any]) -> None:
        session.transcript.extend(turns)
        overflow = len(session.transcript) - self._config.transcript_cap
        if overflow > 0:
            del session.transcript[:overflow]

"""Event state manager wrapping Redis for all read/write operations."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone

from redis.exceptions import WatchError

from app.config import settings
from app.models import (
    MatchingSession,
    MatchRecord,
    Participant,
    ScheduledDate,
    ScheduleResult,
    SlotResult,
    UserRanking,
)
from app.preferences import PreferenceTable, resolve_preferences
from app.redis_client import get_redis
from app.scheduler import SchedulerContext, ScheduleError, iter_schedule

logger = logging.getLogger(__name__)


def _prefix() -> str:
    return f"event:{settings.event_slug}"


class ScheduleInProgressError(ScheduleError):
    """Another scheduling run holds the event lock."""


class EventStateManager:
    """Manages all event state in Redis."""

    # --- Participants ---

    async def get_participant(self, participant_id: str) -> Participant | None:
        r = get_redis()
        raw = await r.hget(f"{_prefix()}:participants", participant_id)
        if raw:
            return Participant.model_validate_json(raw)
        return None

    async def get_all_participants(self) -> dict[str, Participant]:
        r = get_redis()
        raw_map = await r.hgetall(f"{_prefix()}:participants")
        return {
            pid: Participant.model_validate_json(data)
            for pid, data in raw_map.items()
        }

    async def replace_roster(self, participants: list[Participant]) -> int:
        """Swap in a new roster and clear everything recorded against the old one."""
        r = get_redis()
        pipe = r.pipeline()
        pipe.delete(f"{_prefix()}:participants", f"{_prefix()}:matches")
        for participant in participants:
            pipe.hset(
                f"{_prefix()}:participants",
                participant.id,
                participant.model_dump_json(),
            )
        await pipe.execute()
        await self.clear_rankings()
        await self.clear_schedule()
        logger.info("Roster replaced with %d participants", len(participants))
        return len(participants)

    # --- Raw match records ---

    async def get_match_records(self) -> list[MatchRecord]:
        r = get_redis()
        raw_map = await r.hgetall(f"{_prefix()}:matches")
        records = [MatchRecord.model_validate_json(data) for data in raw_map.values()]
        records.sort(key=lambda rec: (rec.from_id, rec.rank))
        return records

    async def replace_match_records(
        self, records: list[MatchRecord]
    ) -> tuple[MatchingSession, int]:
        """Store a fresh batch of ranked match records under a new session.

        Only one record per (from, to) pair is kept; a later duplicate
        replaces the earlier one.
        """
        r = get_redis()
        pipe = r.pipeline()
        pipe.delete(f"{_prefix()}:matches")
        stored: dict[str, MatchRecord] = {}
        for record in records:
            stored[f"{record.from_id}:{record.to_id}"] = record
        for field, record in stored.items():
            pipe.hset(f"{_prefix()}:matches", field, record.model_dump_json())
        await pipe.execute()

        session = await self.create_session(record_count=len(stored))
        return session, len(stored)

    async def get_matches_for(self, participant_id: str) -> list[MatchRecord]:
        """A participant's own ranked recommendations, best first."""
        return [
            rec for rec in await self.get_match_records() if rec.from_id == participant_id
        ]

    # --- Post-date rankings ---

    async def save_rankings(self, rankings: list[UserRanking]) -> list[UserRanking]:
        """Upsert rankings; one per (ranker, ranked) pair, the newest wins."""
        r = get_redis()
        now = datetime.now(timezone.utc).isoformat()
        saved = [ranking.model_copy(update={"updated_at": now}) for ranking in rankings]
        pipe = r.pipeline()
        for ranking in saved:
            pipe.hset(
                f"{_prefix()}:rankings:{ranking.ranker_id}",
                ranking.ranked_id,
                ranking.model_dump_json(),
            )
        await pipe.execute()
        return saved

    async def get_rankings(self, ranker_id: str) -> list[UserRanking]:
        r = get_redis()
        raw_map = await r.hgetall(f"{_prefix()}:rankings:{ranker_id}")
        rankings = [UserRanking.model_validate_json(data) for data in raw_map.values()]
        rankings.sort(key=lambda rk: rk.ranked_id)
        return rankings

    async def clear_rankings(self) -> int:
        r = get_redis()
        keys = [key async for key in r.scan_iter(f"{_prefix()}:rankings:*")]
        if keys:
            await r.delete(*keys)
        return len(keys)

    # --- Matching sessions ---

    async def create_session(self, record_count: int = 0) -> MatchingSession:
        r = get_redis()
        session = MatchingSession(
            id=str(uuid.uuid4())[:8],
            created_at=datetime.now(timezone.utc).isoformat(),
            record_count=record_count,
        )
        await r.hset(f"{_prefix()}:sessions", session.id, session.model_dump_json())
        await r.set(f"{_prefix()}:session:latest", session.id)
        return session

    async def get_latest_session(self) -> MatchingSession | None:
        r = get_redis()
        session_id = await r.get(f"{_prefix()}:session:latest")
        if not session_id:
            return None
        raw = await r.hget(f"{_prefix()}:sessions", session_id)
        if raw:
            return MatchingSession.model_validate_json(raw)
        return None

    # --- Preferences ---

    async def get_preference_table(self) -> PreferenceTable:
        participants = await self.get_all_participants()
        records = await self.get_match_records()
        return resolve_preferences(
            list(participants.values()),
            records,
            limit=settings.preference_list_size,
        )

    # --- Schedule ---

    async def clear_schedule(self) -> None:
        r = get_redis()
        await r.delete(
            f"{_prefix()}:dates",
            f"{_prefix()}:unmatched",
            f"{_prefix()}:schedule",
        )

    async def save_slot(self, result: SlotResult) -> None:
        """Write one slot's dates and unmatched list atomically."""
        r = get_redis()
        pipe = r.pipeline(transaction=True)
        for date in result.dates:
            pipe.rpush(f"{_prefix()}:dates", date.model_dump_json())
        pipe.hset(
            f"{_prefix()}:unmatched",
            str(result.time_slot),
            json.dumps(result.unmatched),
        )
        await pipe.execute()

    async def get_dates(self) -> list[ScheduledDate]:
        r = get_redis()
        raw_list = await r.lrange(f"{_prefix()}:dates", 0, -1)
        return [ScheduledDate.model_validate_json(raw) for raw in raw_list]

    async def get_dates_for(self, participant_id: str) -> list[ScheduledDate]:
        dates = [
            d
            for d in await self.get_dates()
            if participant_id in (d.participant_1, d.participant_2)
        ]
        dates.sort(key=lambda d: d.time_slot)
        return dates

    async def get_schedule(self) -> ScheduleResult | None:
        """Rebuild the last run's result from the stored dates and diagnostics."""
        r = get_redis()
        raw = await r.get(f"{_prefix()}:schedule")
        if not raw:
            return None
        summary = json.loads(raw)

        dates = await self.get_dates()
        unmatched = await r.hgetall(f"{_prefix()}:unmatched")
        slots = []
        for slot in range(1, summary["total_slots"] + 1):
            slots.append(
                SlotResult(
                    time_slot=slot,
                    dates=[d for d in dates if d.time_slot == slot],
                    unmatched=json.loads(unmatched.get(str(slot), "[]")),
                )
            )
        return ScheduleResult(
            session_id=summary["session_id"],
            total_slots=summary["total_slots"],
            slots=slots,
            never_matched=summary["never_matched"],
            total_dates=len(dates),
        )

    async def _release_lock(self, lock_key: str, token: str) -> bool:
        """Delete the run lock only if this run still owns it."""
        r = get_redis()
        async with r.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(lock_key)
                if await pipe.get(lock_key) != token:
                    logger.warning("Schedule lock expired before the run finished")
                    return False
                pipe.multi()
                pipe.delete(lock_key)
                await pipe.execute()
                return True
            except WatchError:
                logger.warning("Schedule lock changed hands while being released")
                return False

    async def generate_schedule(self, total_slots: int | None = None) -> ScheduleResult:
        """Regenerate the full date schedule from the current roster and matches.

        Works on one snapshot of the roster and match records read up front.
        Each slot is persisted before the next one is computed, and the
        summary is stored before the first slot so a partial run stays
        readable.

        Raises:
            NotEnoughParticipantsError: fewer than two participants.
            ScheduleInProgressError: another run holds the event lock.
        """
        total_slots = total_slots or settings.total_slots
        r = get_redis()
        lock_key = f"{_prefix()}:schedule_lock"
        token = uuid.uuid4().hex
        acquired = await r.set(lock_key, token, nx=True, ex=settings.schedule_lock_seconds)
        if not acquired:
            raise ScheduleInProgressError("A schedule is already being generated.")

        try:
            participants = sorted(
                (await self.get_all_participants()).values(), key=lambda p: p.name
            )
            records = await self.get_match_records()
            session = await self.get_latest_session()
            session_id = session.id if session else None

            table = resolve_preferences(
                participants, records, limit=settings.preference_list_size
            )
            ctx = SchedulerContext(
                [p.id for p in participants],
                table,
                total_slots,
                late_slot_threshold=settings.late_slot_threshold,
            )

            await self.clear_schedule()
            await self._save_summary(session_id, total_slots, [])
            logger.info(
                "Generating %d slots for %d participants (%d match records)",
                total_slots,
                len(participants),
                len(records),
            )

            slots: list[SlotResult] = []
            for result in iter_schedule(ctx, session_id=session_id):
                await self.save_slot(result)
                slots.append(result)
                if not result.dates:
                    logger.info("Slot %d produced no dates", result.time_slot)

            never_matched = ctx.never_matched()
            await self._save_summary(session_id, total_slots, never_matched)

            total_dates = sum(len(s.dates) for s in slots)
            logger.info(
                "Schedule complete: %d dates, %d participants never matched",
                total_dates,
                len(never_matched),
            )
            return ScheduleResult(
                session_id=session_id,
                total_slots=total_slots,
                slots=slots,
                never_matched=never_matched,
                total_dates=total_dates,
            )
        finally:
            await self._release_lock(lock_key, token)

    async def _save_summary(
        self, session_id: str | None, total_slots: int, never_matched: list[str]
    ) -> None:
        r = get_redis()
        await r.set(
            f"{_prefix()}:schedule",
            json.dumps(
                {
                    "session_id": session_id,
                    "total_slots": total_slots,
                    "never_matched": never_matched,
                }
            ),
        )


# Global instance
state_manager = EventStateManager()

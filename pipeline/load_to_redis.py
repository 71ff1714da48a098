"""Load pipeline output (participants + match records) into Redis."""

from __future__ import annotations

import asyncio
import json
import sys
import uuid
from datetime import datetime, timezone

import redis.asyncio as aioredis

from app.models import MatchingSession, MatchRecord, Participant


async def load_data(
    participants_path: str = "data/participants.json",
    matches_path: str = "data/matches.json",
    redis_url: str = "redis://localhost:6379",
    event_slug: str = "speed-dating-2026",
) -> None:
    """Load the roster and ranked match records into Redis."""
    prefix = f"event:{event_slug}"

    r = aioredis.from_url(redis_url, decode_responses=True)

    with open(participants_path) as f:
        participants = [Participant.model_validate(p) for p in json.load(f)]

    print(f"Loading {len(participants)} participants...")
    pipe = r.pipeline()
    pipe.delete(
        f"{prefix}:participants",
        f"{prefix}:matches",
        f"{prefix}:dates",
        f"{prefix}:unmatched",
        f"{prefix}:schedule",
    )
    for participant in participants:
        pipe.hset(f"{prefix}:participants", participant.id, participant.model_dump_json())
    await pipe.execute()
    print(f"  Loaded {len(participants)} participants")

    with open(matches_path) as f:
        records = [MatchRecord.model_validate(m) for m in json.load(f)]

    print(f"Loading {len(records)} match records...")
    pipe = r.pipeline()
    for record in records:
        pipe.hset(
            f"{prefix}:matches",
            f"{record.from_id}:{record.to_id}",
            record.model_dump_json(),
        )
    await pipe.execute()
    print(f"  Loaded {len(records)} match records")

    session = MatchingSession(
        id=str(uuid.uuid4())[:8],
        created_at=datetime.now(timezone.utc).isoformat(),
        record_count=len(records),
    )
    await r.hset(f"{prefix}:sessions", session.id, session.model_dump_json())
    await r.set(f"{prefix}:session:latest", session.id)
    print(f"Matching session {session.id} created")

    await r.aclose()


async def _check_existing(redis_url: str, event_slug: str) -> bool:
    """Check if event data already exists in Redis. Returns True if safe to proceed."""
    prefix = f"event:{event_slug}"
    r = aioredis.from_url(redis_url, decode_responses=True)
    count = await r.hlen(f"{prefix}:participants")
    await r.aclose()

    if count == 0:
        return True

    print(f"Found {count} existing participants in Redis for '{event_slug}'.")
    print("  [w] Wipe existing data and reload")
    print("  [x] Exit")
    choice = input("  > ").strip().lower()

    if choice == "w":
        r = aioredis.from_url(redis_url, decode_responses=True)
        keys = []
        async for key in r.scan_iter(f"{prefix}:*"):
            keys.append(key)
        if keys:
            await r.delete(*keys)
        await r.aclose()
        print(f"  Wiped {len(keys)} keys")
        return True

    print("  Exiting.")
    return False


def main():
    from app.config import settings

    redis_url = sys.argv[1] if len(sys.argv) > 1 else settings.redis_url

    if not asyncio.run(_check_existing(redis_url, settings.event_slug)):
        return
    asyncio.run(load_data(redis_url=redis_url, event_slug=settings.event_slug))


if __name__ == "__main__":
    main()

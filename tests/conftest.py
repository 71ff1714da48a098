"""Shared test fixtures — fakeredis, test client, roster seeding."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import settings
from app.models import MatchRecord, Participant, Sex


@pytest.fixture(autouse=True)
def _test_settings():
    """Ensure test-safe settings for every test."""
    original_slug = settings.event_slug
    original_slots = settings.total_slots
    settings.event_slug = "test-event"
    settings.total_slots = 5
    yield
    settings.event_slug = original_slug
    settings.total_slots = original_slots


@pytest.fixture
def fake_redis():
    """Fresh fakeredis instance per test."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest_asyncio.fixture
async def client(fake_redis):
    """FastAPI async test client backed by fakeredis."""
    with (
        patch("app.state.get_redis", return_value=fake_redis),
        patch("app.redis_client.get_redis", return_value=fake_redis),
        patch("app.main.close_pool", new_callable=AsyncMock),
    ):
        from app.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

    await fake_redis.flushall()


def make_participant(
    id: str,
    sex: Sex = Sex.OTHER,
    partner_prefs: list[Sex] | None = None,
    name: str = "",
) -> Participant:
    return Participant(
        id=id,
        name=name or f"Person {id}",
        email=f"{id}@test.com",
        sex=sex,
        partner_prefs=partner_prefs if partner_prefs is not None else [Sex.OTHER],
    )


def straight_roster(women: int, men: int) -> list[Participant]:
    roster = [
        make_participant(f"w{i}", Sex.FEMALE, [Sex.MALE]) for i in range(women)
    ]
    roster += [make_participant(f"m{i}", Sex.MALE, [Sex.FEMALE]) for i in range(men)]
    return roster


def ranked_records(participants: list[Participant]) -> list[MatchRecord]:
    """Every participant ranks their compatible candidates in roster order, up to 7."""
    records = []
    for person in participants:
        candidates = [
            p for p in participants
            if p.id != person.id
            and p.sex in person.partner_prefs
            and person.sex in p.partner_prefs
        ]
        for rank, other in enumerate(candidates[:7], start=1):
            records.append(
                MatchRecord(from_id=person.id, to_id=other.id, rank=rank, reason="test")
            )
    return records


async def seed_roster(client: AsyncClient, participants: list[Participant]) -> None:
    resp = await client.post(
        "/api/admin/roster",
        json={"participants": [p.model_dump(mode="json") for p in participants]},
    )
    assert resp.status_code == 200


async def seed_matches(client: AsyncClient, records: list[MatchRecord]) -> dict:
    resp = await client.post(
        "/api/admin/matches",
        json={"records": [r.model_dump(mode="json") for r in records]},
    )
    assert resp.status_code == 200
    return resp.json()

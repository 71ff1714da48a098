"""Tests for the offline pipeline — seeding, file-based scheduling, Redis loading."""

from __future__ import annotations

import json
import random
from unittest.mock import patch

import pytest

from app.config import settings
from app.models import ScheduleResult
from app.state import EventStateManager
from pipeline.build_schedule import run
from pipeline.load_to_redis import load_data
from scripts.seed_test_data import generate_match_records, generate_participants, seed


class TestSeedData:
    def test_match_records_are_compatible_and_ranked(self):
        random.seed(1)
        participants = generate_participants(30)
        people = {p["id"]: p for p in participants}
        records = generate_match_records(participants)

        by_person: dict[str, list[int]] = {}
        for r in records:
            a, b = people[r["from_id"]], people[r["to_id"]]
            assert b["sex"] in a["partner_prefs"] and a["sex"] in b["partner_prefs"]
            by_person.setdefault(r["from_id"], []).append(r["rank"])

        for ranks in by_person.values():
            assert ranks == list(range(1, len(ranks) + 1))
            assert len(ranks) <= 7


class TestBuildSchedule:
    def test_writes_schedule_file(self, tmp_path):
        random.seed(2)
        seed(participant_count=24, output_dir=str(tmp_path))
        output = tmp_path / "dates.json"

        result = run(
            participants_path=str(tmp_path / "participants.json"),
            matches_path=str(tmp_path / "matches.json"),
            output_path=str(output),
            total_slots=5,
        )

        stored = ScheduleResult.model_validate_json(output.read_text())
        assert stored == result
        assert len(stored.slots) == 5

    def test_missing_matches_file(self, tmp_path):
        participants = [
            {"id": "a", "name": "A", "sex": "female", "partner_prefs": ["male"]},
            {"id": "b", "name": "B", "sex": "male", "partner_prefs": ["female"]},
        ]
        (tmp_path / "participants.json").write_text(json.dumps(participants))

        result = run(
            participants_path=str(tmp_path / "participants.json"),
            matches_path=str(tmp_path / "missing.json"),
            output_path=str(tmp_path / "dates.json"),
            total_slots=2,
        )
        assert result.total_dates == 1
        assert result.slots[1].dates[0].participant_1 in ("a", "b")


@pytest.mark.asyncio
class TestLoadToRedis:
    async def test_load_then_generate(self, tmp_path, fake_redis):
        random.seed(3)
        seed(participant_count=20, output_dir=str(tmp_path))

        with (
            patch("pipeline.load_to_redis.aioredis.from_url", return_value=fake_redis),
            patch("app.state.get_redis", return_value=fake_redis),
        ):
            await load_data(
                participants_path=str(tmp_path / "participants.json"),
                matches_path=str(tmp_path / "matches.json"),
                event_slug=settings.event_slug,
            )

            manager = EventStateManager()
            participants = await manager.get_all_participants()
            assert len(participants) == 20

            session = await manager.get_latest_session()
            records = await manager.get_match_records()
            assert session is not None
            assert session.record_count == len(records)

            result = await manager.generate_schedule(total_slots=5)
            assert result.session_id == session.id
            assert len(await manager.get_dates()) == result.total_dates

        await fake_redis.flushall()

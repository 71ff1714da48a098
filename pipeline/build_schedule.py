"""Build a date schedule offline from roster and match-record JSON files."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from app.config import settings
from app.models import MatchRecord, Participant, ScheduleResult
from app.preferences import resolve_preferences
from app.scheduler import ScheduleError, build_schedule


def load_inputs(
    participants_path: str = "data/participants.json",
    matches_path: str = "data/matches.json",
) -> tuple[list[Participant], list[MatchRecord]]:
    with open(participants_path) as f:
        participants = [Participant.model_validate(p) for p in json.load(f)]

    try:
        with open(matches_path) as f:
            records = [MatchRecord.model_validate(m) for m in json.load(f)]
    except FileNotFoundError:
        print(f"  No match records at {matches_path}, scheduling on compatibility only")
        records = []

    return participants, records


def run(
    participants_path: str = "data/participants.json",
    matches_path: str = "data/matches.json",
    output_path: str = "data/dates.json",
    total_slots: int | None = None,
) -> ScheduleResult:
    total_slots = total_slots or settings.total_slots
    participants, records = load_inputs(participants_path, matches_path)
    print(f"Loaded {len(participants)} participants and {len(records)} match records")

    participants.sort(key=lambda p: p.name)
    table = resolve_preferences(
        participants, records, limit=settings.preference_list_size
    )
    result = build_schedule(
        participants,
        table,
        total_slots,
        late_slot_threshold=settings.late_slot_threshold,
    )

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        f.write(result.model_dump_json(indent=2))

    names = {p.id: p.name for p in participants}
    for slot in result.slots:
        unmatched = ", ".join(names[pid] for pid in slot.unmatched) or "none"
        print(f"  Slot {slot.time_slot}: {len(slot.dates)} dates (unmatched: {unmatched})")
    if result.never_matched:
        print(f"  Never matched: {', '.join(names[pid] for pid in result.never_matched)}")

    print(f"Created {result.total_dates} dates → {output_path}")
    return result


def main():
    parser = argparse.ArgumentParser(description="Build the date schedule from JSON files")
    parser.add_argument("--participants", default="data/participants.json")
    parser.add_argument("--matches", default="data/matches.json")
    parser.add_argument("--output", default="data/dates.json")
    parser.add_argument("--slots", type=int, help="Number of time slots")
    args = parser.parse_args()

    try:
        run(args.participants, args.matches, args.output, args.slots)
    except ScheduleError as e:
        print(f"Error: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()

"""Orchestrate the pre-event pipeline.

Usage:
    python -m scripts.run_pipeline                 # Seed test data + load to Redis
    python -m scripts.run_pipeline --seed-only     # Just generate test data (no Redis)
    python -m scripts.run_pipeline --offline       # Seed + build the schedule from files
    python -m scripts.run_pipeline --skip-seed     # Use existing data/*.json files
"""

from __future__ import annotations

import argparse
import asyncio


def main():
    parser = argparse.ArgumentParser(description="Run the pre-event pipeline")
    parser.add_argument(
        "--seed-only",
        action="store_true",
        help="Only generate test data, don't load to Redis",
    )
    parser.add_argument(
        "--skip-seed",
        action="store_true",
        help="Reuse data/participants.json and data/matches.json",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Build the schedule from the JSON files instead of loading Redis",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=60,
        help="Number of fake participants to generate (default: 60)",
    )
    parser.add_argument(
        "--slots",
        type=int,
        default=None,
        help="Number of time slots (default: settings.total_slots)",
    )
    args = parser.parse_args()

    if not args.skip_seed:
        print("=== Generating test data ===")
        from scripts.seed_test_data import seed
        seed(participant_count=args.count)

    if args.seed_only:
        print("\n=== Done (seed only, no Redis load) ===")
        return

    if args.offline:
        print("\n=== Building schedule ===")
        from pipeline.build_schedule import run
        run(total_slots=args.slots)
        print("\n=== Pipeline complete! ===")
        return

    print("\n=== Loading to Redis ===")
    from app.config import settings
    from pipeline.load_to_redis import load_data
    asyncio.run(load_data(redis_url=settings.redis_url, event_slug=settings.event_slug))

    print("\n=== Pipeline complete! ===")
    print("Start the server: .venv/bin/uvicorn app.main:app --reload")
    print("Then POST /api/admin/dates to generate the schedule")


if __name__ == "__main__":
    main()

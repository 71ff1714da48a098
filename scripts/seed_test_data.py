"""Generate a fake roster and ranked match records for development testing."""

from __future__ import annotations

import json
import random
import uuid
from pathlib import Path

FIRST_NAMES = [
    "Alice", "Ben", "Carlos", "Dana", "Emily", "Frank", "Grace", "Henry",
    "Iris", "Jack", "Kim", "Leo", "Maya", "Noah", "Olivia", "Pablo",
    "Quinn", "Rosa", "Sam", "Tara", "Uma", "Victor", "Wendy", "Xavier",
    "Yuki", "Zara", "Aaron", "Beth", "Chris", "Diane", "Elena", "Felix",
    "Gina", "Hugo", "Isla", "James", "Kira", "Liam", "Mia", "Nate",
    "Opal", "Priya", "Raj", "Sofia", "Tyler", "Uri", "Vera", "Will",
    "Xena", "Yara", "Zach", "Ava", "Blake", "Cleo", "Drew", "Eva",
    "Finn", "Gia", "Hank", "Ivy",
]

LAST_INITIALS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

HOBBIES = [
    "climbing", "board games", "jazz", "baking", "trail running", "film",
    "poetry", "sailing", "gardening", "photography", "salsa", "chess",
]
TRAITS = ["curious", "calm", "playful", "driven", "thoughtful", "spontaneous"]

# (sex, partner_prefs, weight); most of a typical roster is straight
PROFILES = [
    ("female", ["male"], 40),
    ("male", ["female"], 40),
    ("female", ["female"], 6),
    ("male", ["male"], 6),
    ("female", ["female", "male"], 4),
    ("male", ["female", "male"], 3),
    ("other", ["female", "male", "other"], 1),
]


def generate_participants(count: int = 60) -> list[dict]:
    participants = []
    used_names = set()
    weights = [w for _, _, w in PROFILES]

    for i in range(count):
        first = FIRST_NAMES[i % len(FIRST_NAMES)]
        last_init = LAST_INITIALS[i % len(LAST_INITIALS)]
        name = f"{first} {last_init}."

        # Ensure unique names
        while name in used_names:
            last_init = random.choice(LAST_INITIALS)
            name = f"{first} {last_init}."
        used_names.add(name)

        sex, prefs, _ = random.choices(PROFILES, weights=weights)[0]
        hobbies = random.sample(HOBBIES, 2)

        participants.append(
            {
                "id": str(uuid.uuid4())[:8],
                "name": name,
                "email": f"{first.lower()}.{last_init.lower()}@test.com",
                "sex": sex,
                "partner_prefs": list(prefs),
                "about_me": f"Into {hobbies[0]} and {hobbies[1]}.",
                "looking_for": f"Someone {random.choice(TRAITS)} to share {hobbies[0]} with.",
                "personality": random.choice(TRAITS),
            }
        )

    return participants


def _compatible(a: dict, b: dict) -> bool:
    return (
        a["id"] != b["id"]
        and b["sex"] in a["partner_prefs"]
        and a["sex"] in b["partner_prefs"]
    )


def generate_match_records(participants: list[dict], per_person: int = 7) -> list[dict]:
    """Stand in for the AI ranking: up to ``per_person`` ranked picks each.

    Picks are drawn from compatible candidates, favoring shared hobbies,
    the way the real ranking step only ever sees compatible candidates.
    """
    records = []

    for person in participants:
        candidates = [p for p in participants if _compatible(person, p)]
        if not candidates:
            continue

        def affinity(other: dict) -> float:
            shared = sum(
                1 for hobby in HOBBIES
                if hobby in person["about_me"] and hobby in other["about_me"]
            )
            return shared * 10 + random.random() * 15

        ranked = sorted(candidates, key=affinity, reverse=True)[:per_person]
        for rank, other in enumerate(ranked, start=1):
            records.append(
                {
                    "from_id": person["id"],
                    "to_id": other["id"],
                    "rank": rank,
                    "reason": f"Both described themselves as {other['personality']}-leaning.",
                }
            )

    return records


def seed(
    participant_count: int = 60,
    output_dir: str = "data",
) -> None:
    """Generate all test data files."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    print(f"Generating {participant_count} fake participants...")
    participants = generate_participants(participant_count)
    with open(out / "participants.json", "w") as f:
        json.dump(participants, f, indent=2)
    print(f"  → {out / 'participants.json'}")

    print("Generating ranked match records...")
    records = generate_match_records(participants)
    with open(out / "matches.json", "w") as f:
        json.dump(records, f, indent=2)
    print(f"  → {out / 'matches.json'} ({len(records)} records)")

    print("Done!")


if __name__ == "__main__":
    import sys

    count = int(sys.argv[1]) if len(sys.argv) > 1 else 60
    seed(participant_count=count)

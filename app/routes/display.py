"""Name-resolved views of schedule results for API responses."""

from __future__ import annotations

from app.models import Participant, ScheduleResult


def _person(participant_id: str, participants: dict[str, Participant]) -> dict:
    p = participants.get(participant_id)
    return {"id": participant_id, "name": p.name if p else "?"}


def build_schedule_display(
    result: ScheduleResult, participants: dict[str, Participant]
) -> dict:
    slots = []
    for slot in result.slots:
        slots.append(
            {
                "time_slot": slot.time_slot,
                "dates": [
                    {
                        "participant_1": _person(d.participant_1, participants),
                        "participant_2": _person(d.participant_2, participants),
                    }
                    for d in slot.dates
                ],
                "unmatched": [_person(pid, participants) for pid in slot.unmatched],
            }
        )

    return {
        "session_id": result.session_id,
        "total_slots": result.total_slots,
        "total_dates": result.total_dates,
        "slots": slots,
        "never_matched": [_person(pid, participants) for pid in result.never_matched],
    }

"""Admin API routes — roster, match records, schedule generation."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.models import MatchRecord, Participant, ScheduleResult
from app.routes.display import build_schedule_display
from app.scheduler import NotEnoughParticipantsError
from app.state import ScheduleInProgressError, state_manager

router = APIRouter(prefix="/api/admin")


# --- Request models ---


class RosterRequest(BaseModel):
    participants: list[Participant]


class MatchRecordsRequest(BaseModel):
    records: list[MatchRecord]


class GenerateDatesRequest(BaseModel):
    total_slots: int | None = None


# --- Routes ---


@router.post("/roster")
async def upload_roster(request: RosterRequest):
    ids = [p.id for p in request.participants]
    if len(ids) != len(set(ids)):
        raise HTTPException(status_code=400, detail="Duplicate participant ids")

    count = await state_manager.replace_roster(request.participants)
    return {
        "ok": True,
        "participants_created": count,
        "message": f"Successfully imported {count} participants",
    }


@router.get("/participants")
async def list_participants():
    participants = await state_manager.get_all_participants()
    ordered = sorted(participants.values(), key=lambda p: p.name)
    return {
        "participants": [
            {"id": p.id, "name": p.name, "email": p.email, "sex": p.sex}
            for p in ordered
        ]
    }


@router.post("/matches")
async def upload_matches(request: MatchRecordsRequest):
    session, stored = await state_manager.replace_match_records(request.records)
    return {"ok": True, "session": session.model_dump(), "records_stored": stored}


@router.get("/preferences")
async def get_preferences():
    table = await state_manager.get_preference_table()
    return {
        "preferences": table.preferences,
        "scarcity": table.scarcity,
    }


@router.post("/dates")
async def generate_dates(request: GenerateDatesRequest | None = None):
    total_slots = request.total_slots if request else None
    if total_slots is not None and total_slots < 1:
        raise HTTPException(status_code=400, detail="total_slots must be at least 1")

    try:
        result = await state_manager.generate_schedule(total_slots=total_slots)
    except NotEnoughParticipantsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ScheduleInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    participants = await state_manager.get_all_participants()
    return {
        "ok": True,
        "dates_created": result.total_dates,
        "message": f"Successfully generated {result.total_dates} dates!",
        "schedule": build_schedule_display(result, participants),
    }


@router.get("/dates")
async def get_dates():
    result = await state_manager.get_schedule()
    if result is None:
        result = ScheduleResult(total_slots=0)
    participants = await state_manager.get_all_participants()
    return {"schedule": build_schedule_display(result, participants)}

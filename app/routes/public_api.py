"""Participant-facing routes — own dates, own match list, post-date rankings."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.models import Participant, UserRanking
from app.state import state_manager

router = APIRouter(prefix="/api")


class RankingEntry(BaseModel):
    score: int | None = None
    note: str | None = None


class RankRequest(BaseModel):
    """Either one ``ranked_id``/``score`` pair or a batch keyed by ranked id."""

    ranked_id: str | None = None
    score: int | None = None
    note: str | None = None
    rankings: dict[str, RankingEntry] | None = None


async def _require_participant(participant_id: str) -> Participant:
    participant = await state_manager.get_participant(participant_id)
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")
    return participant


def _partner(partner_id: str, participants: dict[str, Participant]) -> dict:
    partner = participants.get(partner_id)
    return {"id": partner_id, "name": partner.name if partner else "?"}


@router.get("/participants/{participant_id}/dates")
async def get_participant_dates(participant_id: str):
    participant = await _require_participant(participant_id)

    dates = await state_manager.get_dates_for(participant_id)
    participants = await state_manager.get_all_participants()

    display = []
    for d in dates:
        partner_id = d.participant_2 if d.participant_1 == participant_id else d.participant_1
        display.append(
            {"time_slot": d.time_slot, "partner": _partner(partner_id, participants)}
        )

    return {"participant": {"id": participant.id, "name": participant.name}, "dates": display}


@router.get("/participants/{participant_id}/matches")
async def get_participant_matches(participant_id: str):
    participant = await _require_participant(participant_id)

    records = await state_manager.get_matches_for(participant_id)
    participants = await state_manager.get_all_participants()

    return {
        "participant": {"id": participant.id, "name": participant.name},
        "matches": [
            {
                "rank": rec.rank,
                "reason": rec.reason,
                "partner": _partner(rec.to_id, participants),
            }
            for rec in records
        ],
    }


@router.post("/participants/{participant_id}/rankings")
async def rank_partners(participant_id: str, request: RankRequest):
    await _require_participant(participant_id)
    participants = await state_manager.get_all_participants()

    def check_target(ranked_id: str) -> None:
        if ranked_id == participant_id:
            raise HTTPException(status_code=400, detail="Cannot rank yourself")
        if ranked_id not in participants:
            raise HTTPException(status_code=400, detail=f"Unknown participant: {ranked_id}")

    if request.rankings is not None:
        if not request.rankings:
            raise HTTPException(status_code=400, detail="No rankings provided")

        batch = []
        for ranked_id, entry in request.rankings.items():
            # Entries without a score are ignored
            if entry.score is None:
                continue
            check_target(ranked_id)
            batch.append(
                UserRanking(
                    ranker_id=participant_id,
                    ranked_id=ranked_id,
                    score=entry.score,
                    note=entry.note,
                )
            )
        saved = await state_manager.save_rankings(batch)
        return {"ok": True, "rankings": [rk.model_dump() for rk in saved]}

    if not request.ranked_id or request.score is None:
        raise HTTPException(status_code=400, detail="Missing ranked_id or score")

    check_target(request.ranked_id)
    ranking = UserRanking(
        ranker_id=participant_id,
        ranked_id=request.ranked_id,
        score=request.score,
        note=request.note,
    )
    (saved,) = await state_manager.save_rankings([ranking])
    return {"ok": True, "ranking": saved.model_dump()}


@router.get("/participants/{participant_id}/rankings")
async def get_participant_rankings(participant_id: str):
    await _require_participant(participant_id)
    rankings = await state_manager.get_rankings(participant_id)
    return {"rankings": [rk.model_dump() for rk in rankings]}

"""Turn raw AI-ranked match records into per-participant preference lists."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from app.compatibility import build_compatibility_graph
from app.models import MatchRecord, Participant

logger = logging.getLogger(__name__)

DEFAULT_LIST_SIZE = 7


class PreferenceTable(BaseModel):
    """Resolved preference structure consumed by the round scheduler."""

    preferences: dict[str, list[str]] = {}
    rank_lookup: dict[str, dict[str, int]] = {}
    compatible: dict[str, set[str]] = {}
    scarcity: dict[str, int] = {}

    def rank_of(self, chooser: str, candidate: str) -> int:
        """Position of candidate in chooser's list; unranked candidates sort last."""
        ranks = self.rank_lookup.get(chooser, {})
        return ranks.get(candidate, len(self.preferences.get(chooser, [])))


def resolve_preferences(
    participants: list[Participant],
    records: list[MatchRecord],
    limit: int = DEFAULT_LIST_SIZE,
) -> PreferenceTable:
    """Build the preference table for one scheduling run.

    Records naming unknown participants, self-pairs, and pairs that are not
    mutually compatible are dropped. Survivors are grouped by ``from_id``,
    ordered by rank and truncated to ``limit``.

    Args:
        participants: The current roster.
        records: Raw ranked match records, one per (from, to) recommendation.
        limit: Maximum preference list length per participant.

    Returns:
        PreferenceTable with preference lists, inverse rank lookups, the
        compatibility adjacency and scarcity counts for every participant.
    """
    graph = build_compatibility_graph(participants)
    known = set(graph.nodes)

    grouped: dict[str, list[MatchRecord]] = {pid: [] for pid in known}
    dropped = 0
    for record in records:
        if record.from_id not in known or record.to_id not in known:
            logger.warning(
                "Skipping match %s -> %s: participant not in roster",
                record.from_id,
                record.to_id,
            )
            continue
        if not graph.has_edge(record.from_id, record.to_id):
            dropped += 1
            continue
        grouped[record.from_id].append(record)

    if dropped:
        logger.info("Dropped %d match records that were not mutually compatible", dropped)

    preferences: dict[str, list[str]] = {}
    rank_lookup: dict[str, dict[str, int]] = {}
    for pid, recs in grouped.items():
        ordered: list[str] = []
        for rec in sorted(recs, key=lambda r: r.rank):
            if rec.to_id in ordered:
                continue
            ordered.append(rec.to_id)
            if len(ordered) >= limit:
                break
        preferences[pid] = ordered
        rank_lookup[pid] = {cid: pos for pos, cid in enumerate(ordered)}

    return PreferenceTable(
        preferences=preferences,
        rank_lookup=rank_lookup,
        compatible={pid: set(graph.neighbors(pid)) for pid in known},
        scarcity={pid: graph.degree(pid) for pid in known},
    )

"""Multi-slot date scheduler with scarcity-based eligibility windows."""

from __future__ import annotations

import logging
from typing import Iterator

import networkx as nx

from app.compatibility import make_pair_key
from app.models import Participant, ScheduledDate, ScheduleResult, SlotResult
from app.preferences import PreferenceTable

logger = logging.getLogger(__name__)

DEFAULT_LATE_SLOT_THRESHOLD = 4

# Weights used when repairing a slot's pairings for coverage
_FIRST_CHANCE_WEIGHT = 3
_GREEDY_WEIGHT = 2
_NEW_EDGE_WEIGHT = 1


class ScheduleError(ValueError):
    """Raised when a schedule cannot be started."""


class NotEnoughParticipantsError(ScheduleError):
    """Fewer than two participants, so nobody can be paired."""


def earliest_allowed_slot(scarcity: int, total_slots: int) -> int:
    """First slot a participant may be scheduled in.

    Participants with few compatible candidates only become eligible near the
    end of the event; anyone with at least ``total_slots`` candidates is
    eligible from slot 1. A scarcity of 0 yields ``total_slots + 1``.
    """
    return max(1, total_slots - min(scarcity, total_slots) + 1)


class SchedulerContext:
    """Mutable state carried across all slots of one scheduling run."""

    def __init__(
        self,
        participant_ids: list[str],
        table: PreferenceTable,
        total_slots: int,
        late_slot_threshold: int = DEFAULT_LATE_SLOT_THRESHOLD,
    ) -> None:
        ids = list(dict.fromkeys(participant_ids))
        if len(ids) < 2:
            raise NotEnoughParticipantsError(
                "Need at least 2 participants to create dates."
            )
        if total_slots < 1:
            raise ScheduleError("At least one time slot is required.")

        self.participant_ids = ids
        self.table = table
        self.total_slots = total_slots
        self.late_slot_threshold = late_slot_threshold

        self.position = {pid: i for i, pid in enumerate(ids)}
        self.used_pairs: set[str] = set()
        self.date_counts: dict[str, int] = {pid: 0 for pid in ids}
        self.earliest_slot: dict[str, int] = {
            pid: earliest_allowed_slot(self.scarcity(pid), total_slots) for pid in ids
        }

    def scarcity(self, pid: str) -> int:
        return self.table.scarcity.get(pid, 0)

    def is_eligible(self, pid: str, slot: int) -> bool:
        return self.earliest_slot.get(pid, self.total_slots + 1) <= slot

    def is_late(self, slot: int) -> bool:
        return slot >= self.late_slot_threshold

    def available_candidates(
        self, pid: str, pool: set[str], taken: set[str]
    ) -> list[str]:
        """Compatible partners in ``pool`` that are free this slot and not met yet."""
        candidates = [
            c
            for c in self.table.compatible.get(pid, ())
            if c in pool
            and c not in taken
            and make_pair_key(pid, c) not in self.used_pairs
        ]
        candidates.sort(key=self.position.__getitem__)
        return candidates

    def record_pair(self, id_a: str, id_b: str) -> None:
        self.used_pairs.add(make_pair_key(id_a, id_b))
        self.date_counts[id_a] += 1
        self.date_counts[id_b] += 1

    def never_matched(self) -> list[str]:
        return [pid for pid in self.participant_ids if self.date_counts[pid] == 0]


def schedule_slot(
    ctx: SchedulerContext,
    slot: int,
    session_id: str | None = None,
) -> SlotResult:
    """Produce the pairings for one time slot and commit them to ``ctx``.

    Passes run in order: singletons on their first eligible slot, the rest of
    the first-chance participants, everyone else, then a rank-blind fallback
    sweep and a coverage repair for whoever is still left over.
    """
    pool = [pid for pid in ctx.participant_ids if ctx.is_eligible(pid, slot)]
    pool_set = set(pool)
    # Late slots serve scarce participants first, early slots the abundant ones
    sign = 1 if ctx.is_late(slot) else -1

    order = _priority_order(ctx, pool, pool_set, sign)
    first_chance = [pid for pid in order if ctx.earliest_slot[pid] == slot]

    taken: set[str] = set()
    pairs: list[tuple[str, str]] = []
    protected: set[str] = set()

    def take(id_a: str, id_b: str) -> None:
        taken.update((id_a, id_b))
        pairs.append((id_a, id_b))

    # Singletons: their only option must not be consumed by someone else
    for pid in first_chance:
        if pid in taken:
            continue
        candidates = ctx.available_candidates(pid, pool_set, taken)
        if len(candidates) == 1:
            take(pid, candidates[0])
            protected.add(make_pair_key(pid, candidates[0]))

    for pid in first_chance:
        if pid in taken:
            continue
        best = _best_candidate(ctx, pid, pool_set, taken, sign)
        if best is not None:
            take(pid, best)
            protected.add(make_pair_key(pid, best))

    for pid in order:
        if pid in taken:
            continue
        best = _best_candidate(ctx, pid, pool_set, taken, sign)
        if best is not None:
            take(pid, best)

    leftovers = [pid for pid in order if pid not in taken and ctx.is_eligible(pid, slot)]
    for id_a, id_b in fallback_pairs(ctx, leftovers, taken, sign):
        take(id_a, id_b)

    if len(pool) - len(taken) >= 2:
        pairs = repair_coverage(ctx, pool_set, pairs, protected)

    dates: list[ScheduledDate] = []
    for id_a, id_b in pairs:
        ctx.record_pair(id_a, id_b)
        dates.append(
            ScheduledDate(
                participant_1=id_a,
                participant_2=id_b,
                time_slot=slot,
                session_id=session_id,
            )
        )

    paired = {pid for pair in pairs for pid in pair}
    unmatched = [pid for pid in ctx.participant_ids if pid not in paired]

    logger.debug(
        "Slot %d: %d eligible, %d dates, %d unmatched",
        slot,
        len(pool),
        len(dates),
        len(unmatched),
    )
    return SlotResult(time_slot=slot, dates=dates, unmatched=unmatched)


def _priority_order(
    ctx: SchedulerContext,
    pool: list[str],
    pool_set: set[str],
    sign: int,
) -> list[str]:
    """Fewest dates first, then scarcity, then remaining options."""
    options = {
        pid: len(ctx.available_candidates(pid, pool_set, set())) for pid in pool
    }
    return sorted(
        pool,
        key=lambda pid: (
            ctx.date_counts[pid],
            sign * ctx.scarcity(pid),
            sign * options[pid],
        ),
    )


def _best_candidate(
    ctx: SchedulerContext,
    pid: str,
    pool_set: set[str],
    taken: set[str],
    sign: int,
) -> str | None:
    candidates = ctx.available_candidates(pid, pool_set, taken)
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda c: (
            ctx.table.rank_of(pid, c),
            ctx.date_counts[c],
            sign * ctx.scarcity(c),
        ),
    )


def fallback_pairs(
    ctx: SchedulerContext,
    leftovers: list[str],
    taken: set[str],
    sign: int,
) -> list[tuple[str, str]]:
    """Rank-blind sweep over participants the greedy passes left unpaired.

    Each leftover only looks at leftovers after it, so no pair is tried twice.
    Compatibility and the no-repeat rule still apply. ``taken`` is updated in
    place.
    """
    ordered = sorted(leftovers, key=ctx.date_counts.__getitem__)
    pairs: list[tuple[str, str]] = []

    for i, pid in enumerate(ordered):
        if pid in taken:
            continue
        compatible = ctx.table.compatible.get(pid, set())
        options = [
            c
            for c in ordered[i + 1 :]
            if c not in taken
            and c in compatible
            and make_pair_key(pid, c) not in ctx.used_pairs
        ]
        if not options:
            continue
        partner = min(options, key=lambda c: (ctx.date_counts[c], sign * ctx.scarcity(c)))
        taken.update((pid, partner))
        pairs.append((pid, partner))

    return pairs


def repair_coverage(
    ctx: SchedulerContext,
    pool_set: set[str],
    pairs: list[tuple[str, str]],
    protected: set[str],
) -> list[tuple[str, str]]:
    """Grow the slot's pairing to maximum cardinality if the greedy passes fell short.

    Solves a maximum-cardinality matching over every pairing still possible
    this slot, weighted so that as many of the greedy pairs as possible
    survive (first-chance pairs above all). Returns ``pairs`` unchanged when
    no larger matching exists.
    """
    chosen = {make_pair_key(a, b): (a, b) for a, b in pairs}

    graph = nx.Graph()
    for pid in sorted(pool_set, key=ctx.position.__getitem__):
        for c in ctx.available_candidates(pid, pool_set, set()):
            key = make_pair_key(pid, c)
            if key in protected:
                weight = _FIRST_CHANCE_WEIGHT
            elif key in chosen:
                weight = _GREEDY_WEIGHT
            else:
                weight = _NEW_EDGE_WEIGHT
            graph.add_edge(pid, c, weight=weight)

    matching = nx.max_weight_matching(graph, maxcardinality=True)
    if len(matching) <= len(pairs):
        return pairs

    kept: list[tuple[str, str]] = []
    added: list[tuple[str, str]] = []
    for id_a, id_b in matching:
        key = make_pair_key(id_a, id_b)
        if key in chosen:
            kept.append(chosen[key])
        elif ctx.position[id_a] <= ctx.position[id_b]:
            added.append((id_a, id_b))
        else:
            added.append((id_b, id_a))

    kept.sort(key=lambda pair: pairs.index(pair))
    added.sort(key=lambda pair: ctx.position[pair[0]])
    logger.debug("Coverage repair grew slot from %d to %d pairs", len(pairs), len(matching))
    return kept + added


def iter_schedule(
    ctx: SchedulerContext,
    session_id: str | None = None,
) -> Iterator[SlotResult]:
    """Yield each slot in order; a slot is committed to ``ctx`` before it is yielded."""
    for slot in range(1, ctx.total_slots + 1):
        yield schedule_slot(ctx, slot, session_id=session_id)


def build_schedule(
    participants: list[Participant],
    table: PreferenceTable,
    total_slots: int,
    late_slot_threshold: int = DEFAULT_LATE_SLOT_THRESHOLD,
    session_id: str | None = None,
) -> ScheduleResult:
    """Run the scheduler over every slot and collect the diagnostics.

    Raises:
        NotEnoughParticipantsError: fewer than two participants.
    """
    ctx = SchedulerContext(
        [p.id for p in participants],
        table,
        total_slots,
        late_slot_threshold=late_slot_threshold,
    )
    slots = list(iter_schedule(ctx, session_id=session_id))
    return ScheduleResult(
        session_id=session_id,
        total_slots=total_slots,
        slots=slots,
        never_matched=ctx.never_matched(),
        total_dates=sum(len(s.dates) for s in slots),
    )

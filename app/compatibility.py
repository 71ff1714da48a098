"""Mutual compatibility between participants."""

from __future__ import annotations

import networkx as nx

from app.models import Participant


def make_pair_key(id_a: str, id_b: str) -> str:
    """Canonical key for an unordered pair."""
    return ":".join(sorted([id_a, id_b]))


def is_mutually_compatible(a: Participant, b: Participant) -> bool:
    """True when each participant's partner preferences include the other's sex."""
    if a.id == b.id:
        return False
    return b.sex in a.partner_prefs and a.sex in b.partner_prefs


def build_compatibility_graph(participants: list[Participant]) -> nx.Graph:
    """Undirected graph with one node per participant and an edge per compatible pair.

    Participants with nobody compatible still appear as isolated nodes, so
    ``graph.degree(id)`` is their scarcity.
    """
    graph = nx.Graph()
    graph.add_nodes_from(p.id for p in participants)

    for i, a in enumerate(participants):
        for b in participants[i + 1 :]:
            if is_mutually_compatible(a, b):
                graph.add_edge(a.id, b.id)

    return graph

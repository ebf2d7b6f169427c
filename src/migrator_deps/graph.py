from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import networkx as nx

from migrator_deps.store import DependencyPair


def build_graph(pairs: Iterable[DependencyPair]) -> nx.MultiDiGraph:
    """Build a directed graph where A -> B means A depends on B.

    One edge per pair, so a repository referenced twice (two submodule paths,
    or a submodule and a workflow) gets parallel edges.
    """
    g = nx.MultiDiGraph()
    for p in pairs:
        g.add_node(p.source_repo)
        g.add_node(p.target_repo)
        g.add_edge(
            p.source_repo,
            p.target_repo,
            dependency_type=p.dependency_type,
            dependency_url=p.dependency_url,
        )
    return g


def organization_of(full_name: str) -> str:
    return (full_name or "").split("/", 1)[0]


def circular_pairs(g: nx.MultiDiGraph) -> set[tuple[str, str]]:
    """Unordered repository pairs that depend on each other.

    Each pair is normalized as (min, max) so A<->B counts once. Self references
    are not cycles between repositories and are ignored.
    """
    found: set[tuple[str, str]] = set()
    for u, v in g.edges():
        if u == v:
            continue
        if g.has_edge(v, u):
            found.add((min(u, v), max(u, v)))
    return found


def graph_payload(
    g: nx.MultiDiGraph,
    *,
    statuses: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Convert the graph to the `{nodes, edges, stats}` API payload.

    `statuses` maps tracked repositories to their migration status; nodes
    missing from it are reported as "unknown".
    """
    statuses = statuses or {}

    nodes: list[dict[str, Any]] = []
    for node in sorted(g.nodes):
        name = str(node)
        nodes.append(
            {
                "id": name,
                "full_name": name,
                "organization": organization_of(name),
                "status": statuses.get(name, "unknown"),
                "depends_on_count": g.out_degree(name),
                "depended_by_count": g.in_degree(name),
            }
        )

    edges = [
        {
            "source": str(u),
            "target": str(v),
            "dependency_type": (data or {}).get("dependency_type", ""),
        }
        for u, v, data in g.edges(data=True)
    ]

    return {
        "nodes": nodes,
        "edges": edges,
        "stats": {
            "total_repos_with_dependencies": g.number_of_nodes(),
            "total_local_dependencies": g.number_of_edges(),
            "circular_dependency_count": len(circular_pairs(g)),
        },
    }

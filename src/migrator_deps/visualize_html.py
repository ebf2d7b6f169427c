from __future__ import annotations

from pathlib import Path

import networkx as nx
from pyvis.network import Network


def export_pyvis(g: nx.MultiDiGraph, out: Path, height: str = "800px") -> Path:
    """Write the local dependency graph as an interactive HTML page."""
    net = Network(height=height, width="100%", directed=True)
    for node in g.nodes:
        net.add_node(str(node), label=str(node), title=str(node))
    for u, v, data in g.edges(data=True):
        net.add_edge(str(u), str(v), title=(data or {}).get("dependency_type", ""))
    out.parent.mkdir(parents=True, exist_ok=True)
    net.write_html(str(out))
    return out

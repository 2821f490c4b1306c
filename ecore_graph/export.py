from __future__ import annotations

import csv
import json
from typing import Dict, List

from .graph import Edge, EdgeKind, Graph, Node

# edge component names used by the diagram front end
EDGE_TYPES = {
    EdgeKind.REFERENCE: "configurable",
    EdgeKind.SUPERTYPE: "supertype",
}


def node_to_dict(node: Node) -> Dict[str, object]:
    return {
        "id": node.id,
        "type": "custom",
        "data": {
            "kind": node.kind.value,
            "label": node.label,
            "icon": node.icon,
            "attributes": dict(node.attributes),
        },
    }


def edge_to_dict(edge: Edge) -> Dict[str, object]:
    entry: Dict[str, object] = {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "type": EDGE_TYPES[edge.kind],
    }
    if edge.kind is EdgeKind.REFERENCE:
        entry["label"] = edge.label
        entry["data"] = {"containment": bool(edge.containment), "derived": bool(edge.derived)}
    return entry


def graph_to_dict(graph: Graph) -> Dict[str, List[Dict[str, object]]]:
    return {
        "nodes": [node_to_dict(node) for node in graph.nodes],
        "edges": [edge_to_dict(edge) for edge in graph.edges],
    }


def export_json(graph: Graph, output_path: str) -> Dict[str, int]:
    with open(output_path, "w", encoding="utf-8") as handle:
        json.dump(graph_to_dict(graph), handle, indent=2, ensure_ascii=False)
    return {"nodes": len(graph.nodes), "edges": len(graph.edges)}


def export_edges(graph: Graph, output_path: str) -> List[Dict[str, object]]:
    rows: List[Dict[str, object]] = []
    for edge in graph.edges:
        rows.append(
            {
                "id": edge.id,
                "source": edge.source,
                "target": edge.target,
                "kind": edge.kind.value,
                "label": edge.label or "",
                "containment": bool(edge.containment),
            }
        )
    with open(output_path, "w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(
            handle,
            fieldnames=["id", "source", "target", "kind", "label", "containment"],
        )
        writer.writeheader()
        writer.writerows(rows)
    return rows


def export_gml(graph: Graph, output_path: str) -> Dict[str, int]:
    node_index = {node.id: idx for idx, node in enumerate(graph.nodes)}
    lines = ["graph [", "  directed 1"]
    for node in graph.nodes:
        lines.append("  node [")
        lines.append(f"    id {node_index[node.id]}")
        label = node.label.replace("\"", "'")
        lines.append(f"    label \"{label}\"")
        lines.append(f"    kind \"{node.kind.value}\"")
        lines.append("  ]")

    edge_count = 0
    for edge in graph.edges:
        # GML needs both endpoints declared
        if edge.source not in node_index or edge.target not in node_index:
            continue
        lines.append("  edge [")
        lines.append(f"    source {node_index[edge.source]}")
        lines.append(f"    target {node_index[edge.target]}")
        lines.append(f"    kind \"{edge.kind.value}\"")
        if edge.label:
            label = edge.label.replace("\"", "'")
            lines.append(f"    label \"{label}\"")
        lines.append("  ]")
        edge_count += 1

    lines.append("]")
    with open(output_path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(lines))
        handle.write("\n")
    return {"nodes": len(graph.nodes), "edges": edge_count}

from __future__ import annotations

from colony_evolution_engine import TechTreeView, UnlockStatus

from .config import STATUS_ICONS


def build_graphviz(view: TechTreeView) -> str:
    lines = ["digraph G {"]
    lines.append("rankdir=LR;")
    lines.append("graph [pad=0.2 nodesep=0.4 ranksep=1.2];")
    lines.append("node [style=filled];")

    for node in view.nodes:
        fillcolor = _dim_color(node.style.color, 1 - node.style.opacity)
        stroke = "#16a34a" if node.status is UnlockStatus.UNLOCKED else "#4b5563"
        penwidth = "3" if node.status is UnlockStatus.AVAILABLE else "1.5"
        peripheries = "2" if node.in_cycle else "1"

        label_lines = [f"<B>{STATUS_ICONS[node.status]} {node.label}</B>"]
        label_lines.append(node.category or "uncategorized")
        label_lines.append(f"<FONT POINT-SIZE='10'>{node.cost} pts | tier {node.tier}</FONT>")
        label = "<" + "<BR/>".join(label_lines) + ">"

        lines.append(
            f'"{node.identifier}" [label={label} shape=box fillcolor="{fillcolor}" color="{stroke}" penwidth={penwidth} peripheries={peripheries} tooltip="{_build_tooltip(node)}" fontname="Inter" fontsize=12];'
        )

    # one rank per tier keeps columns aligned with the tier layout
    for tier, node_ids in view.tiers.items():
        members = " ".join(f'"{node_id}"' for node_id in node_ids)
        lines.append(f"{{ rank=same; {members} }} // tier {tier}")

    for edge in view.edges:
        color = "#16a34a" if edge.is_highlighted else "#94a3b8"
        lines.append(
            f'"{edge.source}" -> "{edge.target}" [color="{color}" penwidth=1.4 arrowsize=0.8];'
        )

    lines.append("}")
    return "\n".join(lines)


def _dim_color(hex_color: str, factor: float) -> str:
    hex_color = hex_color.lstrip("#")
    r = int(hex_color[0:2], 16)
    g = int(hex_color[2:4], 16)
    b = int(hex_color[4:6], 16)
    r = int(r + (255 - r) * factor)
    g = int(g + (255 - g) * factor)
    b = int(b + (255 - b) * factor)
    return f"#{r:02x}{g:02x}{b:02x}"


def _build_tooltip(node) -> str:
    details = [node.label, f"Status: {node.status.value}"]
    if node.prerequisites:
        details.append("Prerequisites: " + ", ".join(node.prerequisites))
    return " | ".join(details)

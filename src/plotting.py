"""Preview rendering of computed layouts."""

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
import pydot

from models import Individual, LayoutResult, Position


def _fill_color(individual: Individual | None) -> str:
    sex = individual.gender if individual else None
    if sex == "M":
        return "lightblue"
    elif sex == "F":
        return "lightpink"
    return "lightgray"


def _label(individual: Individual | None, person_id: str) -> str:
    if individual is None:
        return person_id
    birth = individual.birth_date.year if individual.birth_date and individual.birth_date.year else ""
    death = individual.death_date.year if individual.death_date and individual.death_date.year else ""
    name = individual.name or person_id
    if birth or death:
        return f"{name}\n{birth}-{death}"
    return name


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _anchor(layout: LayoutResult, node_id: str) -> Position | None:
    if node_id in layout.person_positions:
        return layout.person_positions[node_id]
    for fam_pos in layout.family_positions:
        if fam_pos.id == node_id:
            return Position(fam_pos.x, fam_pos.y)
    return None


def plot_layout(
    layout: LayoutResult,
    individuals: list[Individual],
    output_path: Path | None = None,
    box_width: float = 100,
    box_height: float = 40,
):
    """
    Draw the layout as boxes and connector lines with matplotlib.

    Person positions are box centers. The y axis is inverted so generation 0
    of a vertical layout is at the top, like the interactive viewer.
    """
    individuals_by_id = {ind.id: ind for ind in individuals}
    fig, ax = plt.subplots(figsize=(max(8, layout.bounds.width / 100), max(6, layout.bounds.height / 100)))

    for conn in layout.connections:
        start = _anchor(layout, conn.from_id)
        end = _anchor(layout, conn.to_id)
        if start is None or end is None:
            continue
        color = "steelblue" if conn.gender_hint == "M" else "palevioletred" if conn.gender_hint == "F" else "darkgray"
        ax.plot([start.x, end.x], [start.y, end.y], color=color, linewidth=0.8, zorder=1)

    for fam_pos in layout.family_positions:
        ax.plot(fam_pos.x, fam_pos.y, marker="o", markersize=3, color="dimgray", zorder=2)

    for person_id, p in layout.person_positions.items():
        individual = individuals_by_id.get(person_id)
        ax.add_patch(
            Rectangle(
                (p.x - box_width / 2, p.y - box_height / 2),
                box_width,
                box_height,
                facecolor=_fill_color(individual),
                edgecolor="gray",
                linewidth=0.6,
                zorder=3,
            )
        )
        ax.text(p.x, p.y, _label(individual, person_id), ha="center", va="center", fontsize=5, zorder=4)

    ax.set_xlim(0, layout.bounds.width)
    ax.set_ylim(layout.bounds.height, 0)
    ax.set_aspect("equal")
    ax.axis("off")
    ax.set_title(f"Family Tree Layout ({len(layout.person_positions)} people, {len(layout.family_positions)} families)")
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        print(f"Layout plot saved to {output_path}")
    else:
        plt.show()
    plt.close(fig)


def layout_to_dot(layout: LayoutResult, individuals: list[Individual]) -> pydot.Dot:
    """
    Graphviz graph with every node pinned at its computed position.

    Render with `neato -n` (or `neato -n2`) so Graphviz keeps the coordinates.
    Graphviz's y axis points up, so y is flipped against the layout height.
    """
    individuals_by_id = {ind.id: ind for ind in individuals}
    height = layout.bounds.height

    P = pydot.Dot(graph_type="digraph")
    P.set("splines", "line")
    P.set("outputorder", "edgesfirst")

    for person_id, p in layout.person_positions.items():
        individual = individuals_by_id.get(person_id)
        P.add_node(
            pydot.Node(
                f'"{person_id}"',
                label=f'"{_dot_escape(_label(individual, person_id))}"',
                shape="box",
                style='"rounded,filled"',
                fillcolor=_fill_color(individual),
                fontsize="10",
                pos=f'"{p.x:.1f},{height - p.y:.1f}!"',
            )
        )

    for fam_pos in layout.family_positions:
        P.add_node(
            pydot.Node(
                f'"{fam_pos.id}"',
                shape="point",
                width="0.1",
                height="0.1",
                label='""',
                pos=f'"{fam_pos.x:.1f},{height - fam_pos.y:.1f}!"',
            )
        )

    for conn in layout.connections:
        if _anchor(layout, conn.from_id) is None or _anchor(layout, conn.to_id) is None:
            continue
        P.add_edge(
            pydot.Edge(
                f'"{conn.from_id}"',
                f'"{conn.to_id}"',
                dir="none" if conn.kind == "spouse" else "forward",
                color="darkgray",
            )
        )

    return P


def write_dot(layout: LayoutResult, individuals: list[Individual], output_path: Path):
    """Write the pinned Graphviz source; rendering images needs the Graphviz binaries."""
    P = layout_to_dot(layout, individuals)
    ext = output_path.suffix.lower().lstrip(".")
    if ext in ("png", "svg", "pdf"):
        P.write(str(output_path), prog=["neato", "-n"], format=ext)
    else:
        P.write_raw(str(output_path))
    print(f"Graphviz output saved to {output_path}")

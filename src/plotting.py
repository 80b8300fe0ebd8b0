"""Text and Graphviz rendering of generation layouts."""

import os
from pathlib import Path

import networkx as nx
import pydot

from graph import build_graph, build_union_layout_graph
from layout import GenerationLayout, spouse_label
from models import FamilyData, Member


ZODIAC_EMOJIS = ["🐀", "🐂", "🐅", "🐇", "🐉", "🐍", "🐴", "🐑", "🐵", "🐔", "🐕", "🐷"]

GENDER_COLORS = {"male": "lightblue", "female": "lightpink"}


def zodiac_emoji(year: int | None) -> str:
    """Chinese zodiac animal of a year; 4 AD was a year of the rat."""
    if year is None:
        return ""
    return ZODIAC_EMOJIS[(year - 4) % 12]


def lifespan(member: Member) -> str:
    if member.birth_year is None and member.death_year is None:
        return ""
    birth = "" if member.birth_year is None else str(member.birth_year)
    death = "" if member.death_year is None else str(member.death_year)
    return f"{birth}-{death}"


def member_label(member: Member) -> str:
    label = member.name
    span = lifespan(member)
    if span:
        label += f" ({span})"
    emoji = zodiac_emoji(member.birth_year)
    if emoji:
        label += f" {emoji}"
    return label


def format_layout(family: FamilyData, layouts: list[GenerationLayout]) -> str:
    """
    Render generation layouts as indented text.

    Spouses are listed under their partner with their precedence label when
    there is more than one; a trailing "|" marks a group with children in
    the next generation.
    """
    settings = family.settings
    lines = [settings.family_name or "Family"]
    if settings.subtitle:
        lines.append(settings.subtitle)
    if settings.hometown:
        lines.append(f"Hometown: {settings.hometown}")

    if not layouts:
        lines.extend(["", "(no generations)"])

    for layout in layouts:
        lines.extend(["", layout.generation.name])
        if not layout.groups:
            lines.append("  (no members)")

        for group in layout.groups:
            marker = " |" if group.has_children else ""
            lines.append(f"  {member_label(group.main)}{marker}")
            for index, spouse in enumerate(group.spouses):
                label = spouse_label(index, len(group.spouses))
                suffix = f" [{label}]" if label else ""
                lines.append(f"    = {member_label(spouse)}{suffix}")

    return "\n".join(lines)


def build_dot(layouts: list[GenerationLayout], G: nx.DiGraph) -> pydot.Dot:
    """
    Build a Graphviz chart of the layouts.

    - Each generation is one rank, members left to right in layout order
    - Couples are joined by an undirected edge labelled with the spouse's precedence
    - Groups with children connect through a family (union) node
    """
    H = build_union_layout_graph(G, layouts)

    P = pydot.Dot(graph_type="digraph")
    P.set("rankdir", "TB")  # Top-to-bottom (ancestors at top)
    P.set("splines", "ortho")
    P.set("nodesep", "0.4")
    P.set("ranksep", "0.6")

    for gen_index, layout in enumerate(layouts):
        sg = pydot.Subgraph(f"generation_{gen_index}", rank="same")
        previous = None

        for member in layout.members:
            node = pydot.Node(
                str(member.key),
                label=member_label(member),
                shape="box",
                style="rounded,filled",
                fillcolor=GENDER_COLORS.get(member.gender, "lightgray"),
                fontsize="10",
            )
            P.add_node(node)
            sg.add_node(pydot.Node(str(member.key)))

            # Invisible edges keep members in display order
            if previous is not None:
                sg.add_edge(pydot.Edge(previous, str(member.key), style="invis"))
            previous = str(member.key)

        for group in layout.groups:
            for index, spouse in enumerate(group.spouses):
                P.add_edge(
                    pydot.Edge(
                        str(group.main.key),
                        str(spouse.key),
                        dir="none",
                        color="darkgray",
                        label=spouse_label(index, len(group.spouses)),
                        constraint="false",
                    )
                )

        P.add_subgraph(sg)

    for node, data in H.nodes(data=True):
        if data.get("node_type") == "family":
            P.add_node(pydot.Node(str(node), shape="point", width="0.1", height="0.1", label=""))

    for u, v, data in H.edges(data=True):
        edge_type = data.get("edge_type", "")
        if edge_type == "spouse_to_family":
            P.add_edge(pydot.Edge(str(u), str(v), dir="none", color="darkgray"))
        elif edge_type == "family_to_child":
            P.add_edge(pydot.Edge(str(u), str(v), color="darkgray"))

    return P


def plot_layout(family: FamilyData, layouts: list[GenerationLayout], output_path: Path | None = None):
    """
    Render the family chart.

    Args:
        family: The family document the layouts were computed from
        layouts: Output of layout_family
        output_path: Path to save the output image (png, svg or pdf). If None, displays interactively.
    """
    P = build_dot(layouts, build_graph(family))

    if output_path:
        ext = output_path.suffix.lower().lstrip(".")
        if ext not in ("png", "svg", "pdf"):
            ext = "png"
        P.write(str(output_path), format=ext)
    else:
        # Save to temporary file and display
        import tempfile

        import matplotlib.image as mpimg
        import matplotlib.pyplot as plt

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            image_path = f.name
        try:
            P.write(image_path, format="png")
            img = mpimg.imread(image_path)
        finally:
            os.unlink(image_path)

        plt.figure(figsize=(20, 16))
        plt.imshow(img)
        plt.axis("off")
        plt.tight_layout()
        plt.show()

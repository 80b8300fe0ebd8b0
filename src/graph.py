"""NetworkX graph building for family documents."""

import networkx as nx

from layout import GenerationLayout, find_member, resolve_spouse_refs
from models import FamilyData


def build_graph(family: FamilyData) -> nx.DiGraph:
    """
    Build a directed relationship graph from a family document.

    Nodes are keyed by member identity key (server id, else local id).
    PARENT_OF edges run from the parent, looked up in the generation above,
    to the child. SPOUSE_OF edges run from a member to each spouse it
    references within its own generation. References that resolve to no
    member add no edge.
    """
    G = nx.DiGraph()

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for gen_index, generation in enumerate(family.generations):
        for member in generation.members:
            G.add_node(
                member.key,
                person_name=member.name,
                gender=member.gender,
                birth_year=member.birth_year,
                death_year=member.death_year,
                generation=gen_index,
            )

    for gen_index, generation in enumerate(family.generations):
        parent_members = family.generations[gen_index - 1].members if gen_index > 0 else []

        for member in generation.members:
            parent = find_member(member.parent_id, parent_members)
            if parent is not None:
                G.add_edge(parent.key, member.key, relationship_type="PARENT_OF")

            for ref in resolve_spouse_refs(member):
                spouse = find_member(ref, generation.members)
                if spouse is not None and spouse is not member:
                    G.add_edge(member.key, spouse.key, relationship_type="SPOUSE_OF")

    return G


def build_union_layout_graph(G: nx.DiGraph, layouts: list[GenerationLayout]) -> nx.DiGraph:
    """
    Build a layout graph using the union-node model for chart rendering.

    Every display group with children gets a "family node" (union node):
    - the group's main member and spouses connect to it
    - each child of the main member hangs from it

    Args:
        G: Relationship graph from build_graph
        layouts: Generation layouts of the same family

    Returns:
        A new graph with person and family nodes
    """
    H = nx.DiGraph()

    # Copy person nodes with their attributes
    for n, data in G.nodes(data=True):
        H.add_node(n, node_type="person", **data)

    for layout in layouts:
        for group in layout.groups:
            if not group.has_children:
                continue

            main_key = group.main.key
            children = [
                child
                for child, edata in G.adj.get(main_key, {}).items()
                if edata.get("relationship_type") == "PARENT_OF"
            ]
            if not children:
                continue

            fam_id = f"FAM_{main_key}"
            member_keys = tuple(m.key for m in group.members)
            H.add_node(fam_id, node_type="family", spouses=member_keys)
            for key in member_keys:
                H.add_edge(key, fam_id, edge_type="spouse_to_family")
            for child in children:
                H.add_edge(fam_id, child, edge_type="family_to_child")

    return H

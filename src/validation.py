"""Data checks for family documents."""

from collections import Counter

import networkx as nx

from graph import build_graph
from layout import find_index, find_member, resolve_spouse_refs
from models import FamilyData


MIN_PARENT_AGE = 12


def validate_family(family: FamilyData) -> list[str]:
    """
    Validate a family document for:
    - Cycles in parent-child relationships
    - Impossible ages (child born before parent, parent younger than 12)
    - Death before birth
    - Parent or spouse references that resolve to no member
    - Spouse references pointing into another generation
    - Duplicate identities within a generation

    Returns a list of warning messages.
    """
    warnings: list[str] = []
    generations = family.generations

    for gen_index, generation in enumerate(generations):
        members = generation.members
        parent_members = generations[gen_index - 1].members if gen_index > 0 else []

        duplicates = [key for key, count in Counter(m.key for m in members).items() if count > 1]
        for key in duplicates:
            warnings.append(f"Duplicate member id {key!r} in generation '{generation.name}'")

        for member in members:
            if member.parent_id is not None and find_member(member.parent_id, parent_members) is None:
                warnings.append(
                    f"Unresolved parent: {member.name} refers to parent {member.parent_id!r} "
                    f"not found in the previous generation"
                )

            for ref in resolve_spouse_refs(member):
                if find_index(ref, members) is not None:
                    continue
                elsewhere = [
                    g.name for g in generations if g is not generation and find_index(ref, g.members) is not None
                ]
                if elsewhere:
                    warnings.append(
                        f"Cross-generation spouse: {member.name} refers to spouse {ref!r} "
                        f"in generation '{elsewhere[0]}'"
                    )
                else:
                    warnings.append(f"Unresolved spouse: {member.name} refers to spouse {ref!r}")

            birth = member.birth_year
            death = member.death_year
            if birth is not None and death is not None and death < birth:
                warnings.append(f"Impossible: {member.name} died before being born")

    G = build_graph(family)

    # Create a subgraph with only PARENT_OF edges for cycle detection
    parent_edges = [
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    ]
    parent_graph = nx.DiGraph(parent_edges)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        warnings.append(f"Cycle detected in parent-child relationships: {[edge[0] for edge in cycle]}")
    except nx.NetworkXNoCycle:
        pass

    for parent, child in parent_edges:
        parent_data = G.nodes[parent]
        child_data = G.nodes[child]
        parent_birth = parent_data.get("birth_year")
        child_birth = child_data.get("birth_year")

        if parent_birth is None or child_birth is None:
            continue
        if child_birth < parent_birth:
            warnings.append(
                f"Impossible: {child_data.get('person_name')} born before parent "
                f"{parent_data.get('person_name')}"
            )
        elif child_birth - parent_birth < MIN_PARENT_AGE:
            warnings.append(
                f"Suspicious: {parent_data.get('person_name')} was less than {MIN_PARENT_AGE} years "
                f"old when {child_data.get('person_name')} was born"
            )

    return warnings

"""GEDCOM import into a generation-layered family document."""

from collections import Counter
from pathlib import Path
import re

from ged4py import GedcomReader
import networkx as nx

from models import FamilyData, Generation, Member, Settings


YEAR_PATTERN = re.compile(r"(?<!\d)(\d{4})(?!\d)")


def extract_numeric_id(xref_id: str) -> int:
    """Extract numeric part from GEDCOM xref_id like '@I_347421849@' or 'I674624289'."""
    digits = re.sub(r"[^0-9]", "", xref_id)
    if not digits:
        raise ValueError(f"No numeric ID found in: {xref_id}")
    return int(digits)


def parse_year(date_str: str | None) -> int | None:
    """
    Extract the year from a GEDCOM date string.

    Qualified and free-form dates are accepted, e.g. "25 NOV 1954", "ABT 1905",
    "(05/15/1923)", "BET 1900 AND 1910" (first year wins). Returns None when no
    four-digit year is present.
    """
    if not date_str:
        return None
    match = YEAR_PATTERN.search(date_str)
    return int(match.group(1)) if match else None


def extract_name(indi) -> tuple[str, str | None]:
    """Full display name and surname of an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return ("Unknown", None)

    name_value = name_rec.value

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_value, tuple):
        given, surname, suffix = name_value
        parts = [p for p in [given, surname, suffix] if p]
        return (" ".join(parts) if parts else "Unknown", surname or None)

    # Fallback: string format "Given /Surname/"
    full_name = str(name_value).replace("/", "").strip() or "Unknown"
    surn = name_rec.sub_tag("SURN")
    return (full_name, surn.value if surn else None)


def extract_event(indi, tag: str) -> tuple[str | None, str | None]:
    """Date and place of an event tag (BIRT, DEAT)."""
    event = indi.sub_tag(tag)
    if event is None:
        return (None, None)

    date_rec = event.sub_tag("DATE")
    place_rec = event.sub_tag("PLAC")

    # ged4py may return DateValue objects
    date_val = str(date_rec.value) if date_rec and date_rec.value else None
    place_val = str(place_rec.value) if place_rec and place_rec.value else None
    return (date_val, place_val)


def read_individuals(reader: GedcomReader) -> dict[int, dict]:
    """Individuals keyed by numeric id, in record order."""
    people: dict[int, dict] = {}
    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue

        name, surname = extract_name(rec)
        sex_rec = rec.sub_tag("SEX")
        birth_date, birth_place = extract_event(rec, "BIRT")
        death_date, _ = extract_event(rec, "DEAT")

        people[extract_numeric_id(rec.xref_id)] = {
            "name": name,
            "surname": surname,
            "gender": "female" if sex_rec and sex_rec.value == "F" else "male",
            "birth_year": parse_year(birth_date),
            "death_year": parse_year(death_date),
            "hometown": birth_place,
        }
    return people


def read_families(reader: GedcomReader) -> list[dict]:
    """FAM records as husband/wife/children ids, in record order."""
    families: list[dict] = []
    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue

        husb = rec.sub_tag("HUSB")
        wife = rec.sub_tag("WIFE")
        families.append(
            {
                "husb": extract_numeric_id(husb.xref_id) if husb and husb.xref_id else None,
                "wife": extract_numeric_id(wife.xref_id) if wife and wife.xref_id else None,
                "children": [
                    extract_numeric_id(child.xref_id)
                    for child in rec.sub_tags("CHIL")
                    if child.xref_id
                ],
            }
        )
    return families


def assign_generation_levels(G: nx.DiGraph, spouses: dict[int, list[int]]) -> dict[int, int]:
    """
    Compute a generation depth for each person of a parent→child graph.

    Everyone starts at level 0 and levels only move down, pass after pass,
    until these all hold:
    - a child sits below each of its parents
    - spouses share a level
    - a parent sits directly above its topmost child, so an in-law's own
      ancestors move down together with the in-law

    The result is shifted so the topmost generation is 0. A marriage within
    one line of descent cannot satisfy all of these; its levels are left as
    they stand after a bounded number of passes.

    Raises:
        ValueError: if the parent-child relationships contain a cycle
    """
    if not nx.is_directed_acyclic_graph(G):
        cycle = nx.find_cycle(G, orientation="original")
        raise ValueError(f"Cycle detected in parent-child relationships: {[edge[0] for edge in cycle]}")

    order = list(nx.topological_sort(G))
    levels: dict[int, int] = {person: 0 for person in order}
    couples = [
        (person, partner)
        for person, partners in spouses.items()
        for partner in partners
        if person in levels and partner in levels
    ]

    for _ in range(2 * len(order) + 1):
        changed = False

        for person in order:
            for parent in G.predecessors(person):
                if levels[person] <= levels[parent]:
                    levels[person] = levels[parent] + 1
                    changed = True

        for person, partner in couples:
            if levels[person] != levels[partner]:
                levels[person] = levels[partner] = max(levels[person], levels[partner])
                changed = True

        for person in reversed(order):
            children = list(G.successors(person))
            if not children:
                continue
            above_children = min(levels[c] for c in children) - 1
            if levels[person] < above_children:
                levels[person] = above_children
                changed = True

        if not changed:
            break

    if levels:
        top = min(levels.values())
        levels = {person: level - top for person, level in levels.items()}
    return levels


def build_family_data(people: dict[int, dict], families: list[dict], family_name: str) -> FamilyData:
    """Assemble generations, parent links, birth order and spouse precedence."""
    G = nx.DiGraph()
    G.add_nodes_from(people)

    spouses: dict[int, list[int]] = {person: [] for person in people}
    fathers: dict[int, int] = {}
    mothers: dict[int, int] = {}
    birth_orders: dict[int, int] = {}

    for fam in families:
        husb = fam["husb"] if fam["husb"] in people else None
        wife = fam["wife"] if fam["wife"] in people else None

        # Record order is marriage order: first FAM is the primary marriage
        if husb is not None and wife is not None:
            if wife not in spouses[husb]:
                spouses[husb].append(wife)
            if husb not in spouses[wife]:
                spouses[wife].append(husb)

        for position, child in enumerate(fam["children"], start=1):
            if child not in people:
                continue
            birth_orders.setdefault(child, position)
            if husb is not None:
                fathers.setdefault(child, husb)
                G.add_edge(husb, child)
            if wife is not None:
                mothers.setdefault(child, wife)
                G.add_edge(wife, child)

    levels = assign_generation_levels(G, spouses)
    depth = max(levels.values()) + 1 if levels else 0
    generations = [
        Generation(id=index + 1, name=f"Generation {index + 1}") for index in range(depth)
    ]

    for person, data in people.items():
        father = fathers.get(person)
        mother = mothers.get(person)
        generations[levels[person]].members.append(
            Member(
                id=person,
                name=data["name"],
                gender=data["gender"],
                birth_order=birth_orders.get(person),
                birth_year=data["birth_year"],
                death_year=data["death_year"],
                hometown=data["hometown"],
                parent_id=father if father is not None else mother,
                mother_id=mother if father is not None else None,
                spouse_ids=list(spouses[person]) or None,
            )
        )

    return FamilyData(settings=Settings(family_name=family_name), generations=generations)


def guess_family_name(people: dict[int, dict]) -> str | None:
    """Most common surname among the imported people."""
    surnames = Counter(p["surname"] for p in people.values() if p["surname"])
    if not surnames:
        return None
    return surnames.most_common(1)[0][0]


def import_gedcom(filepath: Path, family_name: str | None = None) -> FamilyData:
    """
    Read a GEDCOM file into a FamilyData document.

    Non-standard tags (Ancestry's `_` extensions) are ignored. Individuals
    keep the numeric part of their xref as local id and have no server id.

    Args:
        filepath: Path to the .ged file
        family_name: Display name of the family; defaults to the most common
            surname, then the file name

    Returns:
        A family document with generations ordered ancestors first
    """
    with GedcomReader(str(filepath)) as reader:
        people = read_individuals(reader)
        families = read_families(reader)

    name = family_name or guess_family_name(people) or Path(filepath).stem
    return build_family_data(people, families, name)

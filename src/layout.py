"""Generation layout: member ordering and couple grouping for display."""

from dataclasses import dataclass, field

from models import FamilyData, Generation, Member


UNKNOWN_PARENT_RANK = 999
DEFAULT_BIRTH_ORDER = 999
DEFAULT_BIRTH_YEAR = 9999

# Marriage precedence labels: primary wife, second wife, concubine
SPOUSE_LABELS = ("元配", "继室", "侧室")


@dataclass
class DisplayGroup:
    type: str  # single, couple
    main: Member
    spouses: list[Member] = field(default_factory=list)
    has_children: bool = False

    @property
    def is_couple(self) -> bool:
        return self.type == "couple"

    @property
    def members(self) -> list[Member]:
        return [self.main, *self.spouses]


@dataclass
class GenerationLayout:
    generation: Generation
    groups: list[DisplayGroup] = field(default_factory=list)

    @property
    def members(self) -> list[Member]:
        """Members in display order, spouses following their partner."""
        return [member for group in self.groups for member in group.members]


# ============================================================================
# Identity
# ============================================================================


def identity_keys(member: Member) -> list[int | str]:
    """Keys a reference may use for this member, server id first."""
    keys: list[int | str] = []
    if member.api_id:
        keys.append(member.api_id)
    keys.append(member.id)
    return keys


def matches(ref: int | str | None, member: Member, loose: bool = False) -> bool:
    """
    Check whether a relational reference (parent or spouse) points at `member`.

    The server id is tried first, then the local id. With `loose`, a reference
    also matches when its string form equals the key's string form, so that
    a numeric 1 and a string "1" are treated as the same identity.
    """
    if ref is None:
        return False
    for key in identity_keys(member):
        if ref == key:
            return True
        if loose and str(ref) == str(key):
            return True
    return False


def find_index(ref: int | str | None, members: list[Member], loose: bool = False) -> int | None:
    """Position of the first member matching `ref`, or None."""
    for index, member in enumerate(members):
        if matches(ref, member, loose=loose):
            return index
    return None


def find_member(ref: int | str | None, members: list[Member], loose: bool = False) -> Member | None:
    index = find_index(ref, members, loose=loose)
    return None if index is None else members[index]


def resolve_spouse_refs(member: Member) -> list[int | str]:
    """Spouse references in marriage order, whichever field holds them."""
    if member.spouse_ids:
        return list(member.spouse_ids)
    if member.spouse_id is not None:
        return [member.spouse_id]
    return []


# ============================================================================
# Member Sorter
# ============================================================================


def sibling_sort_key(member: Member) -> tuple[int, int]:
    # 0 is a real value; only a missing field falls back to the default
    birth_order = DEFAULT_BIRTH_ORDER if member.birth_order is None else member.birth_order
    birth_year = DEFAULT_BIRTH_YEAR if member.birth_year is None else member.birth_year
    return (birth_order, birth_year)


def parent_rank(member: Member, sorted_parents: list[Member]) -> int:
    """Position of the member's parent in the parent generation's order."""
    if member.parent_id is None:
        return UNKNOWN_PARENT_RANK
    index = find_index(member.parent_id, sorted_parents)
    return UNKNOWN_PARENT_RANK if index is None else index


def sort_members(members: list[Member], parent_members: list[Member] | None = None) -> list[Member]:
    """
    Order a generation's members for display.

    Members are sorted by (parent rank, birth order, birth year). The parent
    generation is ranked by birth order and birth year only. The sort is
    stable, so members with equal keys keep their input order.

    Args:
        members: The generation's members, in any order
        parent_members: Members of the generation directly above, if any

    Returns:
        A new list holding exactly the input members
    """
    sorted_parents = sorted(parent_members or [], key=sibling_sort_key)

    def sort_key(member: Member) -> tuple[int, int, int]:
        return (parent_rank(member, sorted_parents), *sibling_sort_key(member))

    return sorted(members, key=sort_key)


# ============================================================================
# Couple Grouper
# ============================================================================


def group_couples(sorted_members: list[Member]) -> list[DisplayGroup]:
    """
    Fold spouses into the group of the partner that references them.

    Groups keep the position of their main member. A spouse is pulled out of
    its own position and placed right after its partner, in the order of the
    partner's spouse references. References that resolve to no member, or to
    a member already placed, are dropped.
    """
    groups: list[DisplayGroup] = []
    placed: set[int] = set()  # positions in sorted_members

    for index, member in enumerate(sorted_members):
        if index in placed:
            continue
        placed.add(index)

        spouses: list[Member] = []
        for ref in resolve_spouse_refs(member):
            spouse_index = find_index(ref, sorted_members)
            if spouse_index is None or spouse_index in placed:
                continue
            placed.add(spouse_index)
            spouses.append(sorted_members[spouse_index])

        groups.append(
            DisplayGroup(
                type="couple" if spouses else "single",
                main=member,
                spouses=spouses,
            )
        )

    return groups


def spouse_label(index: int, total: int) -> str:
    """Precedence label for the spouse at `index`; shown only for remarriage."""
    if total <= 1:
        return ""
    return SPOUSE_LABELS[min(index, len(SPOUSE_LABELS) - 1)]


def has_children(group: DisplayGroup, next_members: list[Member]) -> bool:
    """Whether any member of the next generation names the group's main member as parent."""
    return any(matches(child.parent_id, group.main, loose=True) for child in next_members)


# ============================================================================
# Family layout
# ============================================================================


def layout_generation(
    generation: Generation,
    parent_generation: Generation | None = None,
    next_generation: Generation | None = None,
) -> GenerationLayout:
    parent_members = parent_generation.members if parent_generation else None
    next_members = next_generation.members if next_generation else []

    groups = group_couples(sort_members(generation.members, parent_members))
    for group in groups:
        group.has_children = has_children(group, next_members)

    return GenerationLayout(generation=generation, groups=groups)


def layout_family(family: FamilyData) -> list[GenerationLayout]:
    """
    Lay out every generation of a family, top to bottom.

    Generation order is taken as given. Each call builds a fresh result and
    leaves `family` untouched.
    """
    generations = family.generations
    layouts: list[GenerationLayout] = []

    for index, generation in enumerate(generations):
        parent_generation = generations[index - 1] if index > 0 else None
        next_generation = generations[index + 1] if index + 1 < len(generations) else None
        layouts.append(layout_generation(generation, parent_generation, next_generation))

    return layouts

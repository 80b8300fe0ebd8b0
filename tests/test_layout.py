import copy
import random

from layout import (
    DisplayGroup,
    group_couples,
    has_children,
    layout_family,
    layout_generation,
    matches,
    resolve_spouse_refs,
    sort_members,
    spouse_label,
)
from models import FamilyData, Generation, Member, Settings


def make_member(id, **fields):
    fields.setdefault("name", f"M{id}")
    fields.setdefault("gender", "male")
    return Member(id=id, **fields)


def names(members):
    return [m.name for m in members]


def test_sort_by_birth_order_without_parent_generation():
    members = [make_member(1, name="A", birth_order=2), make_member(2, name="B", birth_order=1)]
    assert names(sort_members(members)) == ["B", "A"]


def test_sort_groups_children_under_parent_birth_order():
    parents = [
        make_member(1, name="Younger", birth_order=2),
        make_member(2, name="Elder", birth_order=1),
    ]
    children = [
        make_member(10, name="Younger's child", parent_id=1, birth_order=1),
        make_member(20, name="Elder's second", parent_id=2, birth_order=2),
        make_member(21, name="Elder's first", parent_id=2, birth_order=1),
    ]

    assert names(sort_members(children, parents)) == [
        "Elder's first",
        "Elder's second",
        "Younger's child",
    ]


def test_parent_rank_resolves_server_id():
    parents = [
        make_member(1, api_id="p-1", birth_order=2),
        make_member(2, api_id="p-2", birth_order=1),
    ]
    children = [make_member(10, name="of p-1", parent_id="p-1"), make_member(20, name="of p-2", parent_id="p-2")]
    assert names(sort_members(children, parents)) == ["of p-2", "of p-1"]


def test_unresolved_or_missing_parent_sinks_to_bottom():
    parents = [make_member(1)]
    children = [
        make_member(10, name="orphan", birth_order=1),
        make_member(11, name="dangling", parent_id=99, birth_order=1),
        make_member(12, name="child", parent_id=1, birth_order=5),
    ]
    assert names(sort_members(children, parents)) == ["child", "orphan", "dangling"]


def test_missing_values_sort_after_explicit_ones():
    members = [
        make_member(1, name="none"),
        make_member(2, name="year", birth_year=1990),
        make_member(3, name="order", birth_order=3),
    ]
    assert names(sort_members(members)) == ["order", "year", "none"]


def test_zero_is_a_real_birth_order():
    members = [make_member(1, name="one", birth_order=1), make_member(2, name="zero", birth_order=0)]
    assert names(sort_members(members)) == ["zero", "one"]


def test_birth_year_breaks_birth_order_ties():
    members = [
        make_member(1, name="late", birth_order=1, birth_year=1960),
        make_member(2, name="early", birth_order=1, birth_year=1955),
    ]
    assert names(sort_members(members)) == ["early", "late"]


def test_sort_is_stable_for_equal_keys():
    members = [make_member(i, name=f"twin{i}", birth_order=1, birth_year=1980) for i in range(5)]
    assert names(sort_members(members)) == [f"twin{i}" for i in range(5)]


def test_sort_returns_new_list():
    members = [make_member(1, birth_order=2), make_member(2, birth_order=1)]
    result = sort_members(members)
    assert result is not members
    assert [m.id for m in members] == [1, 2]


def test_matches_prefers_server_id_and_falls_back_to_local_id():
    member = make_member(7, api_id="abc")
    assert matches("abc", member)
    assert matches(7, member)
    assert not matches("xyz", member)
    assert not matches(None, member)


def test_matches_loose_compares_string_forms():
    member = make_member(7)
    assert not matches("7", member)
    assert matches("7", member, loose=True)


def test_resolve_spouse_refs_normalizes_legacy_field():
    assert resolve_spouse_refs(make_member(1, spouse_ids=[2, 3])) == [2, 3]
    assert resolve_spouse_refs(make_member(1, spouse_id=5)) == [5]
    assert resolve_spouse_refs(make_member(1, spouse_ids=[], spouse_id=5)) == [5]
    assert resolve_spouse_refs(make_member(1)) == []


def test_multiple_spouses_form_one_couple_group():
    members = [make_member(1, spouse_ids=[2, 3]), make_member(2), make_member(3)]
    groups = group_couples(members)

    assert len(groups) == 1
    assert groups[0].type == "couple"
    assert groups[0].main.id == 1
    assert [s.id for s in groups[0].spouses] == [2, 3]


def test_spouses_follow_reference_order_and_move_next_to_partner():
    members = [make_member(3), make_member(1, spouse_ids=[4, 3]), make_member(2), make_member(4)]
    groups = group_couples(members)

    assert [(g.main.id, [s.id for s in g.spouses]) for g in groups] == [
        (3, []),
        (1, [4]),
        (2, []),
    ]


def test_dangling_spouse_reference_is_dropped():
    groups = group_couples([make_member(1, spouse_id=5)])
    assert groups == [DisplayGroup(type="single", main=groups[0].main, spouses=[])]


def test_spouse_is_placed_only_once():
    members = [make_member(1, spouse_ids=[2]), make_member(3, spouse_ids=[2]), make_member(2)]
    groups = group_couples(members)

    assert [(g.main.id, [s.id for s in g.spouses]) for g in groups] == [(1, [2]), (3, [])]


def test_self_reference_is_inert():
    groups = group_couples([make_member(1, spouse_ids=[1])])
    assert len(groups) == 1
    assert groups[0].type == "single"


def test_mutual_references_produce_one_group():
    members = [make_member(1, spouse_id=2), make_member(2, spouse_id=1)]
    groups = group_couples(members)
    assert len(groups) == 1
    assert groups[0].members == members


def test_spouse_lookup_uses_server_id():
    members = [make_member(1, api_id="a", spouse_ids=["b"]), make_member(2, api_id="b")]
    groups = group_couples(members)
    assert [s.id for s in groups[0].spouses] == [2]


def test_spouse_label():
    assert spouse_label(0, 1) == ""
    assert spouse_label(0, 3) == "元配"
    assert spouse_label(1, 3) == "继室"
    assert spouse_label(2, 3) == "侧室"
    assert spouse_label(5, 6) == "侧室"


def test_has_children_matches_server_id():
    parent = make_member(1, api_id="p-1")
    group = DisplayGroup(type="single", main=parent)
    assert has_children(group, [make_member(10, parent_id="p-1")])
    assert not has_children(group, [make_member(10, parent_id="p-2")])
    assert not has_children(group, [])


def test_has_children_tolerates_string_ids():
    group = DisplayGroup(type="single", main=make_member(1))
    assert has_children(group, [make_member(10, parent_id="1")])


def test_layout_family_flags_groups_with_children(family):
    layouts = layout_family(family)

    assert [len(layout.groups) for layout in layouts] == [1, 2, 1]
    first, second, third = layouts

    assert first.groups[0].main.name == "Chen Da"
    assert [s.name for s in first.groups[0].spouses] == ["Lin Shi", "Wang Shi"]
    assert first.groups[0].has_children

    assert names(second.members) == ["Chen Yi", "Zhao Shi", "Chen Er"]
    assert [g.has_children for g in second.groups] == [True, False]

    assert not third.groups[0].has_children


def test_layout_family_does_not_mutate_input(family):
    snapshot = copy.deepcopy(family)
    layout_family(family)
    assert family == snapshot


def test_layout_is_deterministic(family):
    first = [[m.id for m in layout.members] for layout in layout_family(family)]
    second = [[m.id for m in layout.members] for layout in layout_family(family)]
    assert first == second


def test_empty_generation_has_no_groups():
    layout = layout_generation(Generation(id=1, name="Empty"))
    assert layout.groups == []
    assert layout_family(FamilyData(settings=Settings(family_name="None"))) == []


def test_every_member_lands_in_exactly_one_group():
    rng = random.Random(42)
    for _ in range(50):
        size = rng.randint(0, 12)
        members = [
            make_member(
                i,
                api_id=f"a{i}" if rng.random() < 0.5 else None,
                birth_order=rng.choice([None, 0, 1, 2, 3]),
                birth_year=rng.choice([None, 1900, 1901]),
                spouse_ids=[rng.choice([rng.randint(0, 15), f"a{rng.randint(0, 15)}"]) for _ in range(rng.randint(0, 3))],
            )
            for i in range(size)
        ]
        groups = group_couples(sort_members(members))
        placed = [id(m) for g in groups for m in g.members]

        assert sorted(placed) == sorted(id(m) for m in members)
        for group in groups:
            assert group.is_couple == bool(group.spouses)

# tests/test_commands.py
import pytest

from arranger.domain import commands
from arranger.domain.errors import InvalidConfiguration, Rejected, RejectReason
from arranger.domain.models import (
    Category,
    Configuration,
    ConstraintSet,
    GenderPolicy,
    Group,
    Individual,
    Pair,
    PairKind,
)

def _setup(people, policy=GenderPolicy.BALANCED):
    roster = people(male=3, female=3)
    by_id = {i.id: i for i in roster}
    groups = [
        Group(id="g0", display_name="Group 1", members=[by_id["m0"], by_id["m1"], by_id["f0"]]),
        Group(id="g1", display_name="Group 2", members=[by_id["f1"]]),
        Group(id="g2", display_name="Group 3", members=[]),
    ]
    config = Configuration(group_count=3, min_per_group=2, max_per_group=3, gender_policy=policy)
    return roster, groups, config

def _where(groups, individual_id):
    return next((i for i, g in enumerate(groups) if g.has_member(individual_id)), None)

# -------------------------------
# Manual assign
# -------------------------------

def test_assign_unplaced_individual(people):
    roster, groups, config = _setup(people)
    new_groups = commands.assign_individual("m2", 1, roster, groups, config, ConstraintSet())
    assert new_groups[1].member_ids() == ["f1", "m2"]
    # the inputs are untouched
    assert groups[1].member_ids() == ["f1"]

def test_assign_moves_between_groups(people):
    roster, groups, config = _setup(people)
    new_groups = commands.assign_individual("m0", 2, roster, groups, config, ConstraintSet())
    assert _where(new_groups, "m0") == 2
    assert new_groups[0].member_ids() == ["m1", "f0"]

def test_assign_into_full_group_rejected(people):
    roster, groups, config = _setup(people)
    with pytest.raises(Rejected) as exc:
        commands.assign_individual("m2", 0, roster, groups, config, ConstraintSet())
    assert exc.value.reason == RejectReason.CAPACITY
    assert groups[0].member_ids() == ["m0", "m1", "f0"]

def test_assign_apart_rejected(people):
    roster, groups, config = _setup(people)
    constraints = ConstraintSet(apart=[Pair(a_id="f1", b_id="m2")])
    with pytest.raises(Rejected) as exc:
        commands.assign_individual("m2", 1, roster, groups, config, constraints)
    assert exc.value.reason == RejectReason.APART

def test_assign_gender_rejected_when_separated(people):
    roster, groups, config = _setup(people, GenderPolicy.SEPARATE_BY_GENDER)
    with pytest.raises(Rejected) as exc:
        commands.assign_individual("m2", 1, roster, groups, config, ConstraintSet())
    assert exc.value.reason == RejectReason.GENDER
    # an empty group takes anyone with a gender
    new_groups = commands.assign_individual("m2", 2, roster, groups, config, ConstraintSet())
    assert new_groups[2].member_ids() == ["m2"]

def test_assign_unspecified_rejected_when_separated(people):
    roster, groups, config = _setup(people, GenderPolicy.SEPARATE_BY_GENDER)
    roster = roster + [Individual(id="u0", display_name="U", category=Category.UNSPECIFIED)]
    with pytest.raises(Rejected) as exc:
        commands.assign_individual("u0", 2, roster, groups, config, ConstraintSet())
    assert exc.value.reason == RejectReason.GENDER

def test_assign_unknown_targets(people):
    roster, groups, config = _setup(people)
    with pytest.raises(Rejected) as exc:
        commands.assign_individual("nobody", 1, roster, groups, config, ConstraintSet())
    assert exc.value.reason == RejectReason.NOT_FOUND
    with pytest.raises(Rejected):
        commands.assign_individual("m2", 7, roster, groups, config, ConstraintSet())

def test_assign_keeps_lock(people):
    roster, groups, config = _setup(people)
    roster, groups = commands.toggle_lock("m0", roster, groups)
    new_groups = commands.assign_individual("m0", 2, roster, groups, config, ConstraintSet())
    assert new_groups[2].members[0].locked

# -------------------------------
# Lock / unassign / remove
# -------------------------------

def test_toggle_lock_twice(people):
    roster, groups, _ = _setup(people)
    locked_roster, locked_groups = commands.toggle_lock("m1", roster, groups)
    assert locked_groups[0].members[1].locked
    assert next(i for i in locked_roster if i.id == "m1").locked

    roster2, groups2 = commands.toggle_lock("m1", locked_roster, locked_groups)
    assert not groups2[0].members[1].locked
    assert not next(i for i in roster2 if i.id == "m1").locked

def test_toggle_lock_unknown_is_noop(people):
    roster, groups, _ = _setup(people)
    new_roster, new_groups = commands.toggle_lock("nobody", roster, groups)
    assert new_roster == roster
    assert new_groups == groups

def test_unassign_unlocks(people):
    roster, groups, _ = _setup(people)
    roster, groups = commands.toggle_lock("f0", roster, groups)
    roster, groups = commands.unassign_individual("f0", roster, groups)
    assert _where(groups, "f0") is None
    assert not next(i for i in roster if i.id == "f0").locked

def test_remove_cascades(people):
    roster, groups, _ = _setup(people)
    constraints = ConstraintSet(
        together=[Pair(a_id="m0", b_id="m1"), Pair(a_id="f0", b_id="f1")],
        apart=[Pair(a_id="m0", b_id="f2")],
    )
    roster, groups, constraints = commands.remove_individual("m0", roster, groups, constraints)
    assert "m0" not in {i.id for i in roster}
    assert _where(groups, "m0") is None
    assert [p.key() for p in constraints.together] == [frozenset(("f0", "f1"))]
    assert constraints.apart == []

# -------------------------------
# Groups
# -------------------------------

def test_resize_shrink_releases_and_unlocks(people):
    roster, groups, _ = _setup(people)
    roster, groups = commands.toggle_lock("f1", roster, groups)
    roster, groups = commands.resize_groups(roster, groups, 1)
    assert len(groups) == 1
    assert groups[0].id == "g0"
    f1 = next(i for i in roster if i.id == "f1")
    assert not f1.locked

def test_resize_grow_labels_groups(people):
    roster, groups, _ = _setup(people)
    _, groups = commands.resize_groups(roster, groups, 5)
    assert [g.display_name for g in groups] == [f"Group {i}" for i in range(1, 6)]
    assert [g.id for g in groups[:3]] == ["g0", "g1", "g2"]
    assert len({g.id for g in groups}) == 5

def test_clear_groups(people):
    roster, groups, _ = _setup(people)
    roster, groups = commands.toggle_lock("m0", roster, groups)
    roster, groups = commands.clear_groups(roster, groups)
    assert all(g.members == [] for g in groups)
    assert not any(i.locked for i in roster)

def test_validate_configuration_ranges():
    commands.validate_configuration(Configuration(group_count=2, min_per_group=2, max_per_group=8))
    for bad in (
        Configuration(group_count=1),
        Configuration(group_count=9),
        Configuration(min_per_group=1, max_per_group=4),
        Configuration(min_per_group=5, max_per_group=4),
        Configuration(min_per_group=3, max_per_group=9),
    ):
        with pytest.raises(InvalidConfiguration):
            commands.validate_configuration(bad)

# -------------------------------
# Roster and pairs
# -------------------------------

def test_add_individuals(people):
    roster, _, _ = _setup(people)
    added = commands.create_individual("  Ada ", Category.FEMALE)
    assert added.display_name == "Ada"
    new_roster = commands.add_individuals(roster, [added])
    assert new_roster[-1].id == added.id
    with pytest.raises(InvalidConfiguration):
        commands.add_individuals(new_roster, [added])

def test_add_pair_and_conflict(people):
    roster, _, _ = _setup(people)
    constraints = commands.add_pair(ConstraintSet(), PairKind.TOGETHER, "m0", "f0", roster)
    assert len(constraints.together) == 1
    # same pair again, either order, is a no-op
    assert commands.add_pair(constraints, PairKind.TOGETHER, "f0", "m0", roster) == constraints
    with pytest.raises(Rejected) as exc:
        commands.add_pair(constraints, PairKind.APART, "f0", "m0", roster)
    assert exc.value.reason == RejectReason.CONFLICT

def test_add_pair_invalid(people):
    roster, _, _ = _setup(people)
    with pytest.raises(InvalidConfiguration):
        commands.add_pair(ConstraintSet(), PairKind.APART, "m0", "m0", roster)
    with pytest.raises(InvalidConfiguration):
        commands.add_pair(ConstraintSet(), PairKind.APART, "m0", "nobody", roster)

def test_remove_pair(people):
    roster, _, _ = _setup(people)
    constraints = commands.add_pair(ConstraintSet(), PairKind.APART, "m0", "f0", roster)
    constraints = commands.remove_pair(constraints, PairKind.APART, "f0", "m0")
    assert constraints.apart == []

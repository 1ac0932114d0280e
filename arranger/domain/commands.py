# arranger/domain/commands.py
"""
Manual commands on roster, groups and constraint pairs.

Each command takes the current models and returns new ones; a refused
command raises ``Rejected`` and the inputs stay exactly as they were.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from arranger.domain.errors import InvalidConfiguration, Rejected, RejectReason
from arranger.domain.models import (
    GROUP_COUNT_RANGE,
    GROUP_SIZE_RANGE,
    Category,
    Composition,
    Configuration,
    ConstraintSet,
    GenderPolicy,
    Group,
    Individual,
    Pair,
    PairKind,
    group_composition,
    group_label,
)

logger = logging.getLogger(__name__)


# ----------------------------
# Validation
# ----------------------------
def validate_configuration(config: Configuration) -> None:
    lo, hi = GROUP_COUNT_RANGE
    if not lo <= config.group_count <= hi:
        raise InvalidConfiguration(f"group_count must be between {lo} and {hi}, got {config.group_count}")
    lo, hi = GROUP_SIZE_RANGE
    if not lo <= config.min_per_group <= hi:
        raise InvalidConfiguration(f"min_per_group must be between {lo} and {hi}, got {config.min_per_group}")
    if not config.min_per_group <= config.max_per_group <= hi:
        raise InvalidConfiguration(
            f"max_per_group must be between min_per_group ({config.min_per_group}) and {hi}, "
            f"got {config.max_per_group}"
        )


def validate_membership(roster: Sequence[Individual], groups: Sequence[Group]) -> None:
    """Every group member is on the roster and sits in exactly one group, once."""
    roster_ids = [i.id for i in roster]
    known = set(roster_ids)
    if len(known) != len(roster_ids):
        raise InvalidConfiguration("roster contains duplicate ids")
    seen = set()
    for g in groups:
        for m in g.members:
            if m.id not in known:
                raise InvalidConfiguration(f"{g.display_name or g.id} holds {m.id}, who is not on the roster")
            if m.id in seen:
                raise InvalidConfiguration(f"{m.id} is placed more than once")
            seen.add(m.id)


def _find_group(groups: Sequence[Group], individual_id: str) -> int:
    for i, g in enumerate(groups):
        if g.has_member(individual_id):
            return i
    return -1


def _find(roster: Sequence[Individual], groups: Sequence[Group], individual_id: str) -> Optional[Individual]:
    for g in groups:
        for m in g.members:
            if m.id == individual_id:
                return m
    return next((i for i in roster if i.id == individual_id), None)


# ----------------------------
# Roster
# ----------------------------
def create_individual(display_name: str, category: Category = Category.UNSPECIFIED) -> Individual:
    return Individual(display_name=display_name.strip(), category=category)


def add_individuals(roster: Sequence[Individual], individuals: Sequence[Individual]) -> List[Individual]:
    known = {i.id for i in roster}
    out = list(roster)
    for ind in individuals:
        if ind.id in known:
            raise InvalidConfiguration(f"{ind.id} is already on the roster")
        known.add(ind.id)
        out.append(ind)
    return out


def remove_individual(
    individual_id: str,
    roster: Sequence[Individual],
    groups: Sequence[Group],
    constraints: ConstraintSet,
) -> Tuple[List[Individual], List[Group], ConstraintSet]:
    """Drop an individual from the roster, its group and every pair naming it."""
    new_roster = [i for i in roster if i.id != individual_id]
    new_groups = [
        g.model_copy(update={"members": [m for m in g.members if m.id != individual_id]})
        if g.has_member(individual_id)
        else g
        for g in groups
    ]
    new_constraints = ConstraintSet(
        together=[p for p in constraints.together if not p.involves(individual_id)],
        apart=[p for p in constraints.apart if not p.involves(individual_id)],
    )
    return new_roster, new_groups, new_constraints


def toggle_lock(
    individual_id: str,
    roster: Sequence[Individual],
    groups: Sequence[Group],
) -> Tuple[List[Individual], List[Group]]:
    """Flip ``locked`` on the roster entry and on the group member, wherever it sits."""
    current = _find(roster, groups, individual_id)
    if current is None:
        return list(roster), list(groups)
    locked = not current.locked
    return _set_locked(roster, groups, {individual_id}, locked)


def _set_locked(roster, groups, ids, locked: bool) -> Tuple[List[Individual], List[Group]]:
    def flip(ind: Individual) -> Individual:
        if ind.id in ids and ind.locked != locked:
            return ind.model_copy(update={"locked": locked})
        return ind

    new_roster = [flip(i) for i in roster]
    new_groups = [g.model_copy(update={"members": [flip(m) for m in g.members]}) for g in groups]
    return new_roster, new_groups


# ----------------------------
# Groups
# ----------------------------
def resize_groups(
    roster: Sequence[Individual],
    groups: Sequence[Group],
    count: int,
) -> Tuple[List[Individual], List[Group]]:
    """
    Grow with empty groups or shrink from the end. Members of removed groups
    go back to unplaced and are unlocked. Groups are relabelled in order.
    """
    kept = list(groups[:count])
    released = {m.id for g in groups[count:] for m in g.members}
    while len(kept) < count:
        kept.append(Group())
    kept = [g.model_copy(update={"display_name": group_label(i)}) for i, g in enumerate(kept)]
    if released:
        logger.debug("resize to %d groups released %d member(s)", count, len(released))
        roster, _ = _set_locked(roster, [], released, False)
    return list(roster), kept


def clear_groups(
    roster: Sequence[Individual],
    groups: Sequence[Group],
) -> Tuple[List[Individual], List[Group]]:
    """Empty every group; everyone becomes unplaced and unlocked."""
    new_roster = [i.model_copy(update={"locked": False}) if i.locked else i for i in roster]
    return new_roster, [g.model_copy(update={"members": []}) for g in groups]


def unassign_individual(
    individual_id: str,
    roster: Sequence[Individual],
    groups: Sequence[Group],
) -> Tuple[List[Individual], List[Group]]:
    """Take an individual out of its group, back to unplaced (and unlocked)."""
    new_roster, new_groups = _set_locked(roster, groups, {individual_id}, False)
    new_groups = [
        g.model_copy(update={"members": [m for m in g.members if m.id != individual_id]})
        if g.has_member(individual_id)
        else g
        for g in new_groups
    ]
    return new_roster, new_groups


def assign_individual(
    individual_id: str,
    group_index: int,
    roster: Sequence[Individual],
    groups: Sequence[Group],
    config: Configuration,
    constraints: ConstraintSet,
) -> List[Group]:
    """
    Manually move one individual into ``groups[group_index]``.

    Checks capacity, then the gender policy, then apart pairs, and raises
    Rejected with the first rule that blocks the move. Locked individuals may
    be moved by hand and keep their lock.
    """
    if not 0 <= group_index < len(groups):
        raise Rejected(RejectReason.NOT_FOUND, f"no group at index {group_index}")
    individual = _find(roster, groups, individual_id)
    if individual is None:
        raise Rejected(RejectReason.NOT_FOUND, f"{individual_id} is not on the roster")

    source = _find_group(groups, individual_id)
    if source == group_index:
        return list(groups)

    target = groups[group_index]
    if len(target.members) >= config.max_per_group:
        raise Rejected(RejectReason.CAPACITY, f"{target.display_name} is full")

    if config.gender_policy == GenderPolicy.SEPARATE_BY_GENDER:
        if individual.category == Category.UNSPECIFIED:
            raise Rejected(RejectReason.GENDER, "individuals without a gender cannot be placed in separated groups")
        comp = group_composition(target)
        if comp == Composition.MIXED or (comp != Composition.EMPTY and comp.value != individual.category.value):
            raise Rejected(RejectReason.GENDER, f"{target.display_name} holds the other gender")

    for p in constraints.apart:
        other = p.other(individual_id)
        if other is not None and target.has_member(other):
            raise Rejected(RejectReason.APART, f"{individual_id} must be kept apart from {other}")

    new_groups = []
    for i, g in enumerate(groups):
        if i == source:
            g = g.model_copy(update={"members": [m for m in g.members if m.id != individual_id]})
        elif i == group_index:
            g = g.model_copy(update={"members": list(g.members) + [individual]})
        new_groups.append(g)
    return new_groups


# ----------------------------
# Constraint pairs
# ----------------------------
def add_pair(
    constraints: ConstraintSet,
    kind: PairKind,
    a_id: str,
    b_id: str,
    roster: Sequence[Individual],
) -> ConstraintSet:
    """
    Add an unordered pair to the together or apart set. Adding a pair that is
    already present does nothing; a pair already in the other set is Rejected.
    """
    if a_id == b_id:
        raise InvalidConfiguration("a pair needs two different individuals")
    known = {i.id for i in roster}
    missing = [x for x in (a_id, b_id) if x not in known]
    if missing:
        raise InvalidConfiguration(f"unknown individual(s): {', '.join(missing)}")

    pair = Pair(a_id=a_id, b_id=b_id)
    opposite = PairKind.APART if kind == PairKind.TOGETHER else PairKind.TOGETHER
    if any(p.key() == pair.key() for p in constraints.pairs(opposite)):
        raise Rejected(RejectReason.CONFLICT, f"{a_id}/{b_id} is already a {opposite.value} pair")
    current = constraints.pairs(kind)
    if any(p.key() == pair.key() for p in current):
        return constraints
    return constraints.model_copy(update={kind.value: list(current) + [pair]})


def remove_pair(constraints: ConstraintSet, kind: PairKind, a_id: str, b_id: str) -> ConstraintSet:
    key = frozenset((a_id, b_id))
    kept = [p for p in constraints.pairs(kind) if p.key() != key]
    return constraints.model_copy(update={kind.value: kept})

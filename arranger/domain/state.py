# arranger/domain/state.py
"""
Mutable working state shared by the placement, reconciliation and
rebalancing stages of one arrangement run.

The stages only ever touch this object; the caller's models are left alone
until the run is finalized into new Group instances.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from arranger.domain.models import (
    Category,
    Composition,
    ConstraintSet,
    GenderPolicy,
    Group,
    Individual,
    Pair,
    composition_of,
)


class ConstraintIndex:
    """Lookup tables over the together/apart pairs."""

    def __init__(self, constraints: ConstraintSet, known_ids: Optional[Set[str]] = None):
        self.together = self._usable(constraints.together, known_ids)
        self.apart = self._usable(constraints.apart, known_ids)
        self._partners: Dict[str, Set[str]] = defaultdict(set)
        self._conflicts: Dict[str, Set[str]] = defaultdict(set)
        for p in self.together:
            self._partners[p.a_id].add(p.b_id)
            self._partners[p.b_id].add(p.a_id)
        for p in self.apart:
            self._conflicts[p.a_id].add(p.b_id)
            self._conflicts[p.b_id].add(p.a_id)

    @staticmethod
    def _usable(pairs: Iterable[Pair], known_ids: Optional[Set[str]]) -> List[Pair]:
        seen = set()
        out = []
        for p in pairs:
            if p.a_id == p.b_id or p.key() in seen:
                continue
            if known_ids is not None and not (p.a_id in known_ids and p.b_id in known_ids):
                continue
            seen.add(p.key())
            out.append(p)
        return out

    def partners(self, individual_id: str) -> Set[str]:
        return self._partners.get(individual_id, set())

    def conflicts(self, individual_id: str) -> Set[str]:
        return self._conflicts.get(individual_id, set())


class WorkingState:
    def __init__(
        self,
        members: List[List[Individual]],
        targets: List[int],
        max_per_group: int,
        policy: GenderPolicy,
        index: ConstraintIndex,
    ):
        self.groups = [list(m) for m in members]
        self.targets = list(targets)
        self.max_per_group = max_per_group
        self.policy = policy
        self.index = index
        self._where: Dict[str, int] = {}
        for i, group in enumerate(self.groups):
            for m in group:
                self._where[m.id] = i

    # ----------------------------
    # Queries
    # ----------------------------
    def __len__(self) -> int:
        return len(self.groups)

    def size(self, i: int) -> int:
        return len(self.groups[i])

    def gap(self, i: int) -> int:
        return self.targets[i] - len(self.groups[i])

    def locate(self, individual_id: str) -> Optional[int]:
        return self._where.get(individual_id)

    def member(self, individual_id: str) -> Optional[Individual]:
        i = self._where.get(individual_id)
        if i is None:
            return None
        return next(m for m in self.groups[i] if m.id == individual_id)

    def count(self, i: int, category: Category) -> int:
        return sum(1 for m in self.groups[i] if m.category == category)

    def composition(self, i: int, exclude_id: Optional[str] = None) -> Composition:
        return composition_of(m for m in self.groups[i] if m.id != exclude_id)

    def has_apart_conflict(self, i: int, individual: Individual, exclude_id: Optional[str] = None) -> bool:
        conflicts = self.index.conflicts(individual.id)
        if not conflicts:
            return False
        return any(m.id in conflicts and m.id != exclude_id for m in self.groups[i])

    def gender_allows(self, i: int, individual: Individual, exclude_id: Optional[str] = None) -> bool:
        if self.policy != GenderPolicy.SEPARATE_BY_GENDER:
            return True
        if individual.category == Category.UNSPECIFIED:
            return False
        comp = self.composition(i, exclude_id)
        if comp == Composition.EMPTY:
            return True
        if comp == Composition.MIXED:
            return False
        return comp.value == individual.category.value

    def fits(self, i: int, individual: Individual, exclude_id: Optional[str] = None) -> bool:
        """Gender policy and apart constraints, ignoring capacity."""
        return self.gender_allows(i, individual, exclude_id) and not self.has_apart_conflict(
            i, individual, exclude_id
        )

    def can_place(self, i: int, individual: Individual, limit: Optional[int] = None) -> bool:
        ceiling = self.targets[i] if limit is None else limit
        if len(self.groups[i]) >= min(ceiling, self.max_per_group):
            return False
        return self.fits(i, individual)

    def has_room(self, i: int) -> bool:
        return len(self.groups[i]) < min(self.targets[i], self.max_per_group)

    def has_partner_in(self, i: int, individual: Individual) -> bool:
        partners = self.index.partners(individual.id)
        return bool(partners) and any(m.id in partners for m in self.groups[i])

    # ----------------------------
    # Transitions
    # ----------------------------
    def place(self, i: int, individual: Individual) -> None:
        self.groups[i].append(individual)
        self._where[individual.id] = i

    def remove(self, individual_id: str) -> Individual:
        i = self._where.pop(individual_id)
        group = self.groups[i]
        for k, m in enumerate(group):
            if m.id == individual_id:
                return group.pop(k)
        raise KeyError(individual_id)

    def move(self, individual_id: str, dest: int) -> int:
        """Move to ``dest`` and return the group it came from."""
        src = self._where[individual_id]
        self.place(dest, self.remove(individual_id))
        return src

    def swap(self, a_id: str, b_id: str) -> None:
        ga, gb = self._where[a_id], self._where[b_id]
        a = self.remove(a_id)
        b = self.remove(b_id)
        self.place(gb, a)
        self.place(ga, b)

    # ----------------------------
    # Constraint status
    # ----------------------------
    def split_together(self) -> List[Pair]:
        out = []
        for p in self.index.together:
            ga, gb = self.locate(p.a_id), self.locate(p.b_id)
            if ga is not None and gb is not None and ga != gb:
                out.append(p)
        return out

    def unmet_together(self) -> List[Pair]:
        """Together pairs not sharing a group, including pairs with an unplaced side."""
        out = []
        for p in self.index.together:
            ga = self.locate(p.a_id)
            if ga is None or ga != self.locate(p.b_id):
                out.append(p)
        return out

    def colocated_apart(self) -> List[Pair]:
        out = []
        for p in self.index.apart:
            ga = self.locate(p.a_id)
            if ga is not None and ga == self.locate(p.b_id):
                out.append(p)
        return out

    def violations(self) -> int:
        return len(self.split_together()) + len(self.colocated_apart())

    # ----------------------------
    # Finalize
    # ----------------------------
    def to_groups(self, templates: List[Group]) -> List[Group]:
        return [
            template.model_copy(update={"members": list(members)})
            for template, members in zip(templates, self.groups)
        ]

# arranger/domain/models.py
"""
Entity model for the group arranger.

Plain pydantic models, no arrangement logic. All models are frozen: commands
return new instances (``model_copy(update=...)``) instead of mutating.
JSON field names are camelCase (``displayName``, ``togetherPairs``...) so a
snapshot written by the UI round-trips unchanged.
"""
import uuid
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


GROUP_COUNT_RANGE = (2, 8)
GROUP_SIZE_RANGE = (2, 8)


def new_id() -> str:
    return uuid.uuid4().hex[:8]


class Category(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNSPECIFIED = "unspecified"


class GenderPolicy(str, Enum):
    BALANCED = "balanced"
    FULLY_RANDOM = "fully_random"
    SEPARATE_BY_GENDER = "separate_by_gender"


class Composition(str, Enum):
    """Binary-category make-up of a group. Unspecified members are ignored."""
    EMPTY = "empty"
    MALE = "male"
    FEMALE = "female"
    MIXED = "mixed"


class PairKind(str, Enum):
    TOGETHER = "together"
    APART = "apart"


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Individual(_Model):
    id: str = Field(default_factory=new_id)
    display_name: str = ""
    category: Category = Category.UNSPECIFIED
    locked: bool = False
    absent: bool = False


class Group(_Model):
    id: str = Field(default_factory=new_id)
    display_name: str = ""
    members: List[Individual] = Field(default_factory=list)

    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]

    def has_member(self, individual_id: str) -> bool:
        return any(m.id == individual_id for m in self.members)


class Pair(_Model):
    """Unordered pair of individual ids."""
    a_id: str
    b_id: str

    def key(self) -> frozenset:
        return frozenset((self.a_id, self.b_id))

    def involves(self, individual_id: str) -> bool:
        return individual_id in (self.a_id, self.b_id)

    def other(self, individual_id: str) -> Optional[str]:
        if individual_id == self.a_id:
            return self.b_id
        if individual_id == self.b_id:
            return self.a_id
        return None


class ConstraintSet(_Model):
    together: List[Pair] = Field(default_factory=list)
    apart: List[Pair] = Field(default_factory=list)

    def pairs(self, kind: PairKind) -> List[Pair]:
        return self.together if kind == PairKind.TOGETHER else self.apart


class Configuration(_Model):
    group_count: int = 4
    min_per_group: int = 3
    max_per_group: int = 4
    gender_policy: GenderPolicy = GenderPolicy.BALANCED

    @property
    def capacity(self) -> int:
        return self.group_count * self.max_per_group


class WarningKind(str, Enum):
    TOGETHER_UNSATISFIED = "together_unsatisfied"
    APART_UNSATISFIED = "apart_unsatisfied"
    UNDER_MINIMUM = "under_minimum"
    UNPLACED = "unplaced"


class ArrangementWarning(_Model):
    kind: WarningKind
    message: str
    individual_ids: List[str] = Field(default_factory=list)
    group_id: Optional[str] = None


class ArrangementResult(_Model):
    groups: List[Group]
    # roster after the run; members of groups dropped by a resize come back unlocked
    roster: List[Individual] = Field(default_factory=list)
    unplaced_ids: List[str] = Field(default_factory=list)
    targets: List[int] = Field(default_factory=list)
    warnings: List[ArrangementWarning] = Field(default_factory=list)

    def warnings_of(self, kind: WarningKind) -> List[ArrangementWarning]:
        return [w for w in self.warnings if w.kind == kind]


class Snapshot(_Model):
    """Serializable state exchanged with the persistence/UI collaborators."""
    roster: List[Individual] = Field(default_factory=list)
    groups: List[Group] = Field(default_factory=list)
    group_count: int = 4
    min_per_group: int = 3
    max_per_group: int = 4
    gender_policy: GenderPolicy = GenderPolicy.BALANCED
    together_pairs: List[Pair] = Field(default_factory=list)
    apart_pairs: List[Pair] = Field(default_factory=list)

    @property
    def config(self) -> Configuration:
        return Configuration(
            group_count=self.group_count,
            min_per_group=self.min_per_group,
            max_per_group=self.max_per_group,
            gender_policy=self.gender_policy,
        )

    @property
    def constraints(self) -> ConstraintSet:
        return ConstraintSet(together=self.together_pairs, apart=self.apart_pairs)

    def with_state(
        self,
        roster: Optional[List[Individual]] = None,
        groups: Optional[List[Group]] = None,
        constraints: Optional[ConstraintSet] = None,
        config: Optional[Configuration] = None,
    ) -> "Snapshot":
        update = {}
        if roster is not None:
            update["roster"] = list(roster)
        if groups is not None:
            update["groups"] = list(groups)
        if constraints is not None:
            update["together_pairs"] = list(constraints.together)
            update["apart_pairs"] = list(constraints.apart)
        if config is not None:
            update.update(
                group_count=config.group_count,
                min_per_group=config.min_per_group,
                max_per_group=config.max_per_group,
                gender_policy=config.gender_policy,
            )
        return self.model_copy(update=update)

    def present(self) -> List[Individual]:
        return [i for i in self.roster if not i.absent]

    def unplaced(self) -> List[Individual]:
        placed = {m.id for g in self.groups for m in g.members}
        return [i for i in self.roster if i.id not in placed]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str) -> "Snapshot":
        return cls.model_validate_json(data)


def group_label(index: int) -> str:
    return f"Group {index + 1}"


def composition_of(members) -> Composition:
    cats = {m.category for m in members}
    has_male = Category.MALE in cats
    has_female = Category.FEMALE in cats
    if has_male and has_female:
        return Composition.MIXED
    if has_male:
        return Composition.MALE
    if has_female:
        return Composition.FEMALE
    return Composition.EMPTY


def group_composition(group: Group) -> Composition:
    return composition_of(group.members)


def category_counts(members) -> Tuple[int, int, int]:
    """(male, female, unspecified) counts."""
    male = sum(1 for m in members if m.category == Category.MALE)
    female = sum(1 for m in members if m.category == Category.FEMALE)
    return male, female, len(members) - male - female


class CapacityStatus(str, Enum):
    SHORT = "short"
    EXACT = "exact"
    SPARE = "spare"


class CapacityNote(_Model):
    status: CapacityStatus
    capacity: int
    population: int

    @property
    def difference(self) -> int:
        return self.capacity - self.population

# arranger/services/arrangement_service.py
"""
Stateful wrapper around the domain commands.

Holds the current Snapshot and applies one command at a time under a lock:
the domain functions build new models from the old ones, and the new snapshot
only replaces the current one once a command has fully succeeded.
"""
import logging
import threading
from typing import Callable, List, Optional, Sequence

from arranger.config.settings import settings
from arranger.domain import commands
from arranger.domain.arrange import arrange
from arranger.domain.capacity import capacity_note
from arranger.domain.models import (
    ArrangementResult,
    CapacityNote,
    Category,
    Configuration,
    GenderPolicy,
    Individual,
    PairKind,
    Snapshot,
)
from arranger.domain.pools import Shuffler

logger = logging.getLogger(__name__)


def default_snapshot() -> Snapshot:
    _, groups = commands.resize_groups([], [], settings.GROUP_COUNT_DEFAULT)
    return Snapshot(
        groups=groups,
        group_count=settings.GROUP_COUNT_DEFAULT,
        min_per_group=settings.MIN_PER_GROUP_DEFAULT,
        max_per_group=settings.MAX_PER_GROUP_DEFAULT,
        gender_policy=GenderPolicy(settings.GENDER_POLICY_DEFAULT),
    )


class ArrangementService:
    def __init__(self, snapshot: Optional[Snapshot] = None, shuffler: Optional[Shuffler] = None):
        self._snapshot = snapshot or default_snapshot()
        self._shuffler = shuffler
        self._lock = threading.Lock()
        self.last_result: Optional[ArrangementResult] = None

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def _apply(self, command: Callable[[Snapshot], Snapshot]) -> Snapshot:
        with self._lock:
            self._snapshot = command(self._snapshot)
            return self._snapshot

    # ----------------------------
    # Save / load boundary
    # ----------------------------
    def load(self, data: str) -> Snapshot:
        snapshot = Snapshot.from_json(data)
        commands.validate_membership(snapshot.roster, snapshot.groups)
        return self._apply(lambda _: snapshot)

    def dump(self) -> str:
        return self._snapshot.to_json()

    # ----------------------------
    # Commands
    # ----------------------------
    def arrange(self) -> ArrangementResult:
        with self._lock:
            s = self._snapshot
            result = arrange(s.roster, s.groups, s.constraints, s.config, self._shuffler)
            self._snapshot = s.with_state(roster=result.roster, groups=result.groups)
            self.last_result = result
            return result

    def configure(self, config: Configuration) -> Snapshot:
        commands.validate_configuration(config)

        def run(s: Snapshot) -> Snapshot:
            roster, groups = commands.resize_groups(s.roster, s.groups, config.group_count)
            return s.with_state(roster=roster, groups=groups, config=config)

        return self._apply(run)

    def add_individuals(self, names: Sequence[str], category: Category = Category.UNSPECIFIED) -> List[Individual]:
        added = [commands.create_individual(n, category) for n in names if n.strip()]
        self._apply(lambda s: s.with_state(roster=commands.add_individuals(s.roster, added)))
        return added

    def remove(self, individual_id: str) -> Snapshot:
        def run(s: Snapshot) -> Snapshot:
            roster, groups, constraints = commands.remove_individual(individual_id, s.roster, s.groups, s.constraints)
            return s.with_state(roster=roster, groups=groups, constraints=constraints)

        return self._apply(run)

    def toggle_lock(self, individual_id: str) -> Snapshot:
        def run(s: Snapshot) -> Snapshot:
            roster, groups = commands.toggle_lock(individual_id, s.roster, s.groups)
            return s.with_state(roster=roster, groups=groups)

        return self._apply(run)

    def assign(self, individual_id: str, group_index: int) -> Snapshot:
        def run(s: Snapshot) -> Snapshot:
            groups = commands.assign_individual(
                individual_id, group_index, s.roster, s.groups, s.config, s.constraints
            )
            return s.with_state(groups=groups)

        return self._apply(run)

    def unassign(self, individual_id: str) -> Snapshot:
        def run(s: Snapshot) -> Snapshot:
            roster, groups = commands.unassign_individual(individual_id, s.roster, s.groups)
            return s.with_state(roster=roster, groups=groups)

        return self._apply(run)

    def clear(self) -> Snapshot:
        def run(s: Snapshot) -> Snapshot:
            roster, groups = commands.clear_groups(s.roster, s.groups)
            return s.with_state(roster=roster, groups=groups)

        return self._apply(run)

    def add_pair(self, kind: PairKind, a_id: str, b_id: str) -> Snapshot:
        return self._apply(
            lambda s: s.with_state(constraints=commands.add_pair(s.constraints, kind, a_id, b_id, s.roster))
        )

    def remove_pair(self, kind: PairKind, a_id: str, b_id: str) -> Snapshot:
        return self._apply(lambda s: s.with_state(constraints=commands.remove_pair(s.constraints, kind, a_id, b_id)))

    def capacity(self) -> CapacityNote:
        s = self._snapshot
        return capacity_note(s.config, len(s.present()))

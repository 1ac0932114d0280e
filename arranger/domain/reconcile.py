# arranger/domain/reconcile.py
"""
Post-placement repair of together/apart violations.

Moves and swaps are applied in place and rolled back unless they strictly
lower the number of violated pairs, so repeated passes converge and a run on
an already settled state changes nothing.
"""
import logging
from typing import Optional

from arranger.config.settings import settings
from arranger.domain.models import Individual, Pair
from arranger.domain.state import WorkingState

logger = logging.getLogger(__name__)


class ConstraintReconciler:
    def __init__(self, state: WorkingState):
        self.state = state

    def run(self, passes: Optional[int] = None) -> int:
        """Run up to ``passes`` together+apart passes; returns the number of committed changes."""
        passes = settings.RECONCILE_PASSES if passes is None else passes
        total = 0
        for n in range(passes):
            changes = self.together_pass() + self.apart_pass()
            logger.debug("reconcile pass %d: %d change(s), %d violation(s) left", n + 1, changes, self.state.violations())
            total += changes
            if not changes:
                break
        return total

    def together_pass(self) -> int:
        state = self.state
        changes = 0
        for pair in state.index.together:
            ga, gb = state.locate(pair.a_id), state.locate(pair.b_id)
            if ga is None or gb is None or ga == gb:
                continue
            a, b = state.member(pair.a_id), state.member(pair.b_id)
            if (
                self._try_move(a, gb)
                or self._try_move(b, ga)
                or self._try_swap(a, gb, keep_id=b.id)
                or self._try_swap(b, ga, keep_id=a.id)
            ):
                changes += 1
            else:
                logger.debug("together pair %s/%s left split", pair.a_id, pair.b_id)
        return changes

    def apart_pass(self) -> int:
        state = self.state
        changes = 0
        for pair in state.index.apart:
            g = state.locate(pair.a_id)
            if g is None or g != state.locate(pair.b_id):
                continue
            mover = self._mover(pair)
            if mover is None:
                logger.debug("apart pair %s/%s is locked together", pair.a_id, pair.b_id)
                continue
            others = [i for i in range(len(state)) if i != g]
            if any(self._try_move(mover, i) for i in others) or any(
                self._try_swap(mover, i) for i in others
            ):
                changes += 1
            else:
                logger.debug("apart pair %s/%s left together", pair.a_id, pair.b_id)
        return changes

    # ----------------------------
    # Helpers
    # ----------------------------
    def _mover(self, pair: Pair) -> Optional[Individual]:
        second = self.state.member(pair.b_id)
        if not second.locked:
            return second
        first = self.state.member(pair.a_id)
        if not first.locked:
            return first
        return None

    def _try_move(self, individual: Individual, dest: int) -> bool:
        state = self.state
        if individual.locked or state.locate(individual.id) == dest:
            return False
        if not state.has_room(dest) or not state.fits(dest, individual):
            return False
        before = state.violations()
        src = state.move(individual.id, dest)
        if state.violations() < before:
            return True
        state.move(individual.id, src)
        return False

    def _try_swap(self, individual: Individual, dest: int, keep_id: Optional[str] = None) -> bool:
        state = self.state
        if individual.locked:
            return False
        src = state.locate(individual.id)
        if src is None or src == dest:
            return False
        candidates = [m for m in state.groups[dest] if not m.locked and m.id != keep_id]
        # same category first so balanced groups keep their split
        candidates.sort(key=lambda m: m.category != individual.category)
        for other in candidates:
            if not state.fits(dest, individual, exclude_id=other.id):
                continue
            if not state.fits(src, other, exclude_id=individual.id):
                continue
            before = state.violations()
            state.swap(individual.id, other.id)
            if state.violations() < before:
                return True
            state.swap(individual.id, other.id)
        return False

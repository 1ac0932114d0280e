# arranger/domain/rebalance.py
import logging
from typing import Optional

from arranger.config.settings import settings
from arranger.domain.models import Individual
from arranger.domain.state import WorkingState

logger = logging.getLogger(__name__)


def rebalance_minimum(state: WorkingState, min_per_group: int, max_iterations: Optional[int] = None) -> int:
    """
    Top up groups below ``min_per_group`` with unlocked members of groups
    that are above it. Returns the number of moves made.
    """
    max_iterations = settings.REBALANCE_MAX_ITERATIONS if max_iterations is None else max_iterations
    moves = 0
    changed = True
    guard = 0
    while changed and guard < max_iterations:
        guard += 1
        changed = False
        for i in range(len(state)):
            if state.size(i) >= min_per_group or state.size(i) >= state.max_per_group:
                continue
            donor = _find_donor(state, i, min_per_group)
            if donor is None:
                continue
            src = state.move(donor.id, i)
            logger.debug("moved %s from group %d to group %d to reach the minimum", donor.id, src + 1, i + 1)
            moves += 1
            changed = True
    return moves


def _find_donor(state: WorkingState, dest: int, min_per_group: int) -> Optional[Individual]:
    for j in range(len(state)):
        if j == dest or state.size(j) <= min_per_group:
            continue
        candidates = [m for m in state.groups[j] if not m.locked and state.fits(dest, m)]
        # keep together partners where they are when there is a choice
        candidates.sort(key=lambda m: state.has_partner_in(j, m))
        if candidates:
            return candidates[0]
    return None

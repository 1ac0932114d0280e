# arranger/domain/capacity.py
"""
Seat planning: how many individuals each group should end up with, and (for
the balanced policy) how many of them should be male.

Both planners are pure functions over integer lists and never look at the
individuals themselves.
"""
import logging
import math
from typing import List, Sequence

from arranger.domain.errors import InsufficientPopulation, InvalidConfiguration
from arranger.domain.models import CapacityNote, CapacityStatus, Configuration

logger = logging.getLogger(__name__)


def plan_capacity(
    locked_counts: Sequence[int],
    min_per_group: int,
    max_per_group: int,
    total_population: int,
) -> List[int]:
    """
    Per-group target sizes.

    Every group starts at max(min_per_group, locked members); the rest of the
    population is dealt out one seat at a time, round-robin, to groups still
    below max_per_group. The targets therefore sum to exactly
    min(total_population, len(locked_counts) * max_per_group).

    Raises InsufficientPopulation when the floors alone need more people than
    are available.

    >>> plan_capacity([0, 0, 0, 0], 3, 4, 14)
    [4, 4, 3, 3]
    """
    if min_per_group > max_per_group:
        raise InvalidConfiguration(
            f"min_per_group ({min_per_group}) is larger than max_per_group ({max_per_group})"
        )
    if total_population < 0:
        raise InvalidConfiguration("total_population cannot be negative")
    for i, locked in enumerate(locked_counts):
        if locked > max_per_group:
            raise InvalidConfiguration(
                f"group {i + 1} has {locked} locked members, above max_per_group ({max_per_group})"
            )

    targets = [max(min_per_group, locked) for locked in locked_counts]
    required = sum(targets)
    if required > total_population:
        raise InsufficientPopulation(total_population, required)

    remaining = total_population - required
    while remaining > 0:
        progressed = False
        for i in range(len(targets)):
            if remaining == 0:
                break
            if targets[i] < max_per_group:
                targets[i] += 1
                remaining -= 1
                progressed = True
        if not progressed:
            break

    logger.debug("capacity targets=%s (population=%d, unseated=%d)", targets, total_population, remaining)
    return targets


def largest_remainder(
    ideals: Sequence[float],
    lower: Sequence[int],
    upper: Sequence[int],
    total: int,
) -> List[int]:
    """
    Hamilton apportionment of ``total`` units over real-valued ``ideals``.

    Ideals are clamped into [lower[i], upper[i]] and floored; the shortfall is
    handed out to the largest fractional remainders first (a surplus is taken
    back from the smallest remainders first). ``total`` is clamped to what the
    bounds can hold, so the result always sums to it exactly.
    """
    n = len(ideals)
    clamped = [min(max(v, lo), hi) for v, lo, hi in zip(ideals, lower, upper)]
    counts = [int(math.floor(v)) for v in clamped]
    remainders = [v - c for v, c in zip(clamped, counts)]
    total = max(sum(lower), min(total, sum(upper)))

    delta = total - sum(counts)
    if delta > 0:
        order = sorted(range(n), key=lambda i: remainders[i], reverse=True)
        while delta > 0:
            progressed = False
            for i in order:
                if delta == 0:
                    break
                if counts[i] < upper[i]:
                    counts[i] += 1
                    delta -= 1
                    progressed = True
            if not progressed:
                break
    elif delta < 0:
        order = sorted(range(n), key=lambda i: remainders[i])
        while delta < 0:
            progressed = False
            for i in order:
                if delta == 0:
                    break
                if counts[i] > lower[i]:
                    counts[i] -= 1
                    delta += 1
                    progressed = True
            if not progressed:
                break
    return counts


def plan_category_quota(
    targets: Sequence[int],
    locked_a: Sequence[int],
    locked_b: Sequence[int],
    total_a: int,
    total_b: int,
) -> List[int]:
    """
    Per-group count of category A (male) for the balanced policy.

    total_a / total_b are the whole population's counts (locked included).
    Each quota stays within [locked_a[i], targets[i] - locked_b[i]] and the
    quotas sum to min(total_a, sum(targets)), or to the sum of the upper
    bounds when locked category B members leave no room for that.
    The category B target of a group is ``targets[i] - quota[i]``.
    """
    lower = [min(t, la) for t, la in zip(targets, locked_a)]
    upper = [max(lo, t - lb) for t, lo, lb in zip(targets, lower, locked_b)]
    binary = total_a + total_b
    ratio = total_a / binary if binary else 0.0
    ideals = [t * ratio for t in targets]
    quota = largest_remainder(ideals, lower, upper, min(total_a, sum(targets)))
    logger.debug("category quota=%s (ratio=%.3f)", quota, ratio)
    return quota


def capacity_note(config: Configuration, population: int) -> CapacityNote:
    """Seats (group_count x max_per_group) compared with the number of present (not absent) individuals."""
    capacity = config.capacity
    if capacity < population:
        status = CapacityStatus.SHORT
    elif capacity > population:
        status = CapacityStatus.SPARE
    else:
        status = CapacityStatus.EXACT
    return CapacityNote(status=status, capacity=capacity, population=population)

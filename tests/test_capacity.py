# tests/test_capacity.py
import random

import pytest

from arranger.domain.capacity import capacity_note, largest_remainder, plan_capacity, plan_category_quota
from arranger.domain.errors import InsufficientPopulation, InvalidConfiguration
from arranger.domain.models import CapacityStatus, Configuration

# -------------------------------
# plan_capacity: basic cases
# -------------------------------

def test_capacity_round_robin_from_first_group():
    # 14 people, 4 groups of 3..4 -> the two extra seats go to the first groups
    assert plan_capacity([0, 0, 0, 0], 3, 4, 14) == [4, 4, 3, 3]

def test_capacity_all_at_minimum():
    assert plan_capacity([0, 0, 0], 3, 5, 9) == [3, 3, 3]

def test_capacity_locked_above_minimum_raises_floor():
    # group 1 already holds 5 locked members
    assert plan_capacity([5, 0, 0], 3, 6, 12) == [6, 3, 3]

def test_capacity_more_people_than_seats():
    # nobody goes above max; the surplus is simply not seated
    assert plan_capacity([0, 0], 2, 3, 10) == [3, 3]

# -------------------------------
# plan_capacity: errors
# -------------------------------

def test_capacity_insufficient_population():
    with pytest.raises(InsufficientPopulation) as exc:
        plan_capacity([0, 0, 0, 0], 3, 4, 5)
    assert exc.value.available == 5
    assert exc.value.required == 12

def test_capacity_min_above_max():
    with pytest.raises(InvalidConfiguration):
        plan_capacity([0, 0], 5, 4, 10)

def test_capacity_locked_above_max():
    with pytest.raises(InvalidConfiguration):
        plan_capacity([5, 0], 2, 4, 10)

# -------------------------------
# plan_capacity: properties over random inputs
# -------------------------------

@pytest.mark.parametrize("seed", range(30))
def test_capacity_properties(seed):
    rng = random.Random(seed)
    groups = rng.randint(2, 8)
    lo = rng.randint(2, 8)
    hi = rng.randint(lo, 8)
    locked = [rng.randint(0, hi) for _ in range(groups)]
    floors = [max(lo, l) for l in locked]
    total = sum(floors) + rng.randint(0, 2 * groups * hi)

    targets = plan_capacity(locked, lo, hi, total)

    assert sum(targets) == min(total, groups * hi)
    for t, l in zip(targets, locked):
        assert max(lo, l) <= t <= hi
    # groups still below max got the same number of extra seats, give or take one
    extra = [t - f for t, f in zip(targets, floors) if t < hi]
    if extra:
        assert max(extra) - min(extra) <= 1

# -------------------------------
# Largest remainder
# -------------------------------

def test_largest_remainder_hands_out_shortfall():
    # floors [2, 2, 1, 1] = 6; the spare unit goes to the first .5 remainder
    assert largest_remainder([2, 2, 1.5, 1.5], [0] * 4, [4, 4, 3, 3], 7) == [2, 2, 2, 1]

def test_largest_remainder_takes_back_surplus():
    # ideals sum to 14 but only 7 units exist
    counts = largest_remainder([4, 4, 3, 3], [0] * 4, [4, 4, 3, 3], 7)
    assert sum(counts) == 7
    assert counts == [2, 2, 1, 2]

def test_largest_remainder_clamps_total_to_bounds():
    assert largest_remainder([1, 1], [0, 0], [1, 1], 5) == [1, 1]
    assert largest_remainder([0, 0], [1, 2], [3, 3], 0) == [1, 2]

# -------------------------------
# Category quota (balanced policy)
# -------------------------------

def test_quota_even_split():
    quota = plan_category_quota([4, 4, 3, 3], [0] * 4, [0] * 4, 7, 7)
    assert quota == [2, 2, 2, 1]
    for t, q in zip([4, 4, 3, 3], quota):
        assert abs(q - t / 2) <= 1

def test_quota_respects_locked_members():
    # group 1 already has 3 locked male members and 1 locked female member
    targets = [4, 4, 4]
    quota = plan_category_quota(targets, [3, 0, 0], [1, 0, 0], 6, 6)
    assert quota[0] == 3
    assert sum(quota) == 6

def test_quota_capped_by_locked_category_b():
    # group 1 is entirely locked female, so it cannot take any male member
    targets = [4, 4, 3, 3]
    quota = plan_category_quota(targets, [0] * 4, [4, 0, 0, 0], 12, 4)
    assert quota[0] == 0
    assert sum(quota) == 10

def test_quota_no_binary_population():
    assert plan_category_quota([3, 3], [0, 0], [0, 0], 0, 0) == [0, 0]

@pytest.mark.parametrize("seed", range(30))
def test_quota_properties(seed):
    rng = random.Random(seed)
    groups = rng.randint(2, 8)
    lo = rng.randint(2, 6)
    hi = rng.randint(lo, 8)
    locked_a, locked_b = [], []
    for _ in range(groups):
        la = rng.randint(0, hi)
        lb = rng.randint(0, hi - la)
        locked_a.append(la)
        locked_b.append(lb)
    total_a = sum(locked_a) + rng.randint(0, groups * 2)
    total_b = sum(locked_b) + rng.randint(0, groups * 2)
    floors = sum(max(lo, a + b) for a, b in zip(locked_a, locked_b))
    total = max(total_a + total_b, floors)

    targets = plan_capacity([a + b for a, b in zip(locked_a, locked_b)], lo, hi, total)
    quota = plan_category_quota(targets, locked_a, locked_b, total_a, total_b)

    for q, t, la, lb in zip(quota, targets, locked_a, locked_b):
        assert la <= q <= t - lb
    assert sum(quota) == min(total_a, sum(targets), sum(t - lb for t, lb in zip(targets, locked_b)))

# -------------------------------
# Capacity note
# -------------------------------

def test_capacity_note_statuses():
    config = Configuration(group_count=4, min_per_group=3, max_per_group=4)
    spare = capacity_note(config, 14)
    assert spare.status == CapacityStatus.SPARE
    assert spare.difference == 2
    assert capacity_note(config, 16).status == CapacityStatus.EXACT
    short = capacity_note(config, 20)
    assert short.status == CapacityStatus.SHORT
    assert short.difference == -4

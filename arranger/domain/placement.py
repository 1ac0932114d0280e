# arranger/domain/placement.py
"""
Greedy placement of the unlocked pool into the working state.

Every loop is bounded: an individual that no group accepts is pushed to the
back of its queue, and a loop stops once a whole round of the queue has been
deferred without any placement in between. Nobody is ever dropped; whoever
is left over is returned to the caller as unplaced.
"""
import logging
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence

from arranger.config.settings import settings
from arranger.domain.models import Category, Composition, GenderPolicy, Individual
from arranger.domain.pools import CategoryPools, Shuffler
from arranger.domain.state import WorkingState

logger = logging.getLogger(__name__)

Eligible = Callable[[int, Individual], bool]


class PlacementEngine:
    def __init__(self, state: WorkingState, shuffler: Shuffler, safety_factor: Optional[int] = None):
        self.state = state
        self.shuffler = shuffler
        self.safety_factor = safety_factor or settings.PLACEMENT_SAFETY_FACTOR

    def run(self, pools: CategoryPools, quota: Optional[Sequence[int]] = None) -> List[Individual]:
        """Place the pools and return the individuals left unplaced."""
        policy = self.state.policy
        if policy == GenderPolicy.SEPARATE_BY_GENDER:
            leftovers = self._separate(pools)
        elif policy == GenderPolicy.BALANCED:
            if quota is None:
                raise ValueError("balanced placement needs a category quota")
            leftovers = self._balanced(pools, quota)
        else:
            leftovers = self._fully_random(pools)
        return self._overflow(leftovers)

    # ----------------------------
    # Policies
    # ----------------------------
    def _fully_random(self, pools: CategoryPools) -> List[Individual]:
        queue = deque(self.shuffler.shuffle(pools.drain()))
        order = self._group_order()
        self._together_pass(queue, self.state.can_place, order)
        self._fill(queue, self.state.can_place, order, prefer_gap=True)
        return list(queue)

    def _balanced(self, pools: CategoryPools, quota: Sequence[int]) -> List[Individual]:
        state = self.state
        order = self._group_order()
        goals = {
            Category.MALE: list(quota),
            Category.FEMALE: [t - q for t, q in zip(state.targets, quota)],
        }
        for category, goal in goals.items():
            def eligible(i, individual, category=category, goal=goal):
                return state.count(i, category) < goal[i] and state.can_place(i, individual)

            queue = pools.queue(category)
            self._together_pass(queue, eligible, order)
            self._fill(queue, eligible, order)

        # whatever the quotas could not take, unspecified included
        leftovers = deque(pools.drain())
        self._fill(leftovers, state.can_place, order, prefer_gap=True)
        return list(leftovers)

    def _separate(self, pools: CategoryPools) -> List[Individual]:
        state = self.state
        assigned: Dict[int, Category] = {}
        empty = []
        for i in range(len(state)):
            comp = state.composition(i)
            if comp == Composition.MIXED:
                # a mixed locked group cannot take either category
                state.targets[i] = state.size(i)
            elif comp == Composition.MALE:
                assigned[i] = Category.MALE
            elif comp == Composition.FEMALE:
                assigned[i] = Category.FEMALE
            else:
                empty.append(i)

        remaining = {
            Category.MALE: len(pools.male),
            Category.FEMALE: len(pools.female),
        }
        for i, category in assigned.items():
            remaining[category] -= max(0, state.gap(i))

        # most capacity first, each to whichever category still needs more seats
        empty.sort(key=state.gap, reverse=True)
        for i in empty:
            category = Category.MALE if remaining[Category.MALE] > remaining[Category.FEMALE] else Category.FEMALE
            assigned[i] = category
            remaining[category] -= max(0, state.gap(i))
        logger.debug("separate policy group assignment=%s", {i: c.value for i, c in sorted(assigned.items())})

        order = self._group_order()
        for category in (Category.MALE, Category.FEMALE):
            allowed = [i for i in order if assigned.get(i) == category]
            queue = pools.queue(category)
            self._together_pass(queue, state.can_place, allowed)
            self._fill(queue, state.can_place, allowed)

        # unspecified individuals are never auto-placed under this policy
        return pools.drain()

    def _overflow(self, leftovers: List[Individual]) -> List[Individual]:
        """Last chance for leftovers: allow groups up to max_per_group instead of their target."""
        if not leftovers:
            return []
        state = self.state

        def eligible(i, individual):
            return state.can_place(i, individual, limit=state.max_per_group)

        queue = deque(leftovers)
        self._fill(queue, eligible, self._group_order(), prefer_gap=True)
        if queue:
            logger.debug("%d individual(s) left unplaced after placement", len(queue))
        return list(queue)

    # ----------------------------
    # Loops
    # ----------------------------
    def _group_order(self) -> List[int]:
        return self.shuffler.shuffle(range(len(self.state)))

    def _together_pass(self, queue: Deque[Individual], eligible: Eligible, order: Sequence[int]) -> None:
        """Pull anyone with a together partner already in a group into that group."""
        for i in order:
            while queue:
                idx = next(
                    (k for k, ind in enumerate(queue) if self.state.has_partner_in(i, ind) and eligible(i, ind)),
                    None,
                )
                if idx is None:
                    break
                individual = queue[idx]
                del queue[idx]
                self.state.place(i, individual)

    def _partner_group(self, individual: Individual, eligible: Eligible, order: Sequence[int]) -> Optional[int]:
        if not self.state.index.partners(individual.id):
            return None
        for i in order:
            if self.state.has_partner_in(i, individual) and eligible(i, individual):
                return i
        return None

    def _fill(
        self,
        queue: Deque[Individual],
        eligible: Eligible,
        order: Sequence[int],
        prefer_gap: bool = False,
    ) -> None:
        """
        Place the queue head by head. Round-robin over ``order`` by default;
        with ``prefer_gap`` the open group furthest below its target wins.
        """
        if not queue or not order:
            return
        order = list(order)
        cap = len(queue) * len(order) * self.safety_factor
        pointer = 0
        deferred = 0
        steps = 0
        while queue and steps < cap:
            steps += 1
            individual = queue.popleft()
            dest = self._partner_group(individual, eligible, order)
            if dest is None:
                candidates = [i for i in order[pointer:] + order[:pointer] if eligible(i, individual)]
                if candidates:
                    dest = max(candidates, key=self.state.gap) if prefer_gap else candidates[0]
            if dest is None:
                queue.append(individual)
                deferred += 1
                if deferred >= len(queue):
                    break
                continue
            self.state.place(dest, individual)
            deferred = 0
            pointer = (order.index(dest) + 1) % len(order)

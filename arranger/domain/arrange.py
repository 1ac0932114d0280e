# arranger/domain/arrange.py
"""
The arrangement pipeline:

    capacity plan -> category quota (balanced only) -> category pools
    -> placement -> constraint reconciliation -> minimum-occupancy rebalance

Inputs are validated and never mutated. Configuration and capacity errors are
raised before any work is done; unmet soft constraints come back as warnings
on the result.
"""
import logging
from typing import Dict, List, Optional, Sequence

from arranger.domain.capacity import plan_capacity, plan_category_quota
from arranger.domain.commands import resize_groups, validate_configuration, validate_membership
from arranger.domain.models import (
    ArrangementResult,
    ArrangementWarning,
    Category,
    Configuration,
    ConstraintSet,
    GenderPolicy,
    Group,
    Individual,
    WarningKind,
    category_counts,
)
from arranger.domain.placement import PlacementEngine
from arranger.domain.pools import RandomShuffler, Shuffler, build_pools
from arranger.domain.rebalance import rebalance_minimum
from arranger.domain.reconcile import ConstraintReconciler
from arranger.domain.state import ConstraintIndex, WorkingState

logger = logging.getLogger(__name__)


def arrange(
    roster: Sequence[Individual],
    groups: Sequence[Group],
    constraints: ConstraintSet,
    config: Configuration,
    shuffler: Optional[Shuffler] = None,
) -> ArrangementResult:
    """
    Rebuild group membership for the whole roster.

    Locked members stay where they are. Everyone else who is present goes
    back into the pool and is placed again. Unplaced locked individuals and
    absent ones are left out.
    """
    validate_configuration(config)
    validate_membership(roster, groups)
    shuffler = shuffler or RandomShuffler()

    roster, groups = resize_groups(roster, groups, config.group_count)
    by_id: Dict[str, Individual] = {i.id: i for i in roster}
    separate = config.gender_policy == GenderPolicy.SEPARATE_BY_GENDER

    kept: List[List[Individual]] = []
    pool: List[Individual] = []
    placed = set()
    for g in groups:
        members = []
        for m in g.members:
            placed.add(m.id)
            # roster entry carries the details, the group member carries the lock
            ind = by_id[m.id]
            if ind.locked != m.locked:
                ind = ind.model_copy(update={"locked": m.locked})
            if ind.locked:
                members.append(ind)
            elif not ind.absent:
                pool.append(ind)
        kept.append(members)
    pool.extend(i for i in roster if i.id not in placed and not i.locked and not i.absent)

    seatable = len(pool)
    if separate:
        seatable -= sum(1 for i in pool if i.category == Category.UNSPECIFIED)
    total = sum(len(k) for k in kept) + seatable
    targets = plan_capacity([len(k) for k in kept], config.min_per_group, config.max_per_group, total)

    index = ConstraintIndex(constraints, known_ids=set(by_id))
    state = WorkingState(kept, targets, config.max_per_group, config.gender_policy, index)

    quota = None
    if config.gender_policy == GenderPolicy.BALANCED:
        locked_counts = [category_counts(k) for k in kept]
        pool_male, pool_female, _ = category_counts(pool)
        quota = plan_category_quota(
            targets,
            [c[0] for c in locked_counts],
            [c[1] for c in locked_counts],
            sum(c[0] for c in locked_counts) + pool_male,
            sum(c[1] for c in locked_counts) + pool_female,
        )

    pools = build_pools(pool, shuffler)
    leftovers = PlacementEngine(state, shuffler).run(pools, quota)
    changes = ConstraintReconciler(state).run()
    moves = rebalance_minimum(state, config.min_per_group)

    new_groups = state.to_groups(groups)
    unplaced_ids = [i.id for i in roster if state.locate(i.id) is None]
    warnings = _collect_warnings(state, new_groups, config, [i.id for i in leftovers])

    logger.info(
        "arranged %d of %d individuals into %d groups (%s): %d reconcile change(s), %d rebalance move(s), %d warning(s)",
        len(roster) - len(unplaced_ids),
        len(roster),
        len(new_groups),
        config.gender_policy.value,
        changes,
        moves,
        len(warnings),
    )
    return ArrangementResult(
        groups=new_groups,
        roster=list(roster),
        unplaced_ids=unplaced_ids,
        targets=state.targets,
        warnings=warnings,
    )


def _collect_warnings(
    state: WorkingState,
    groups: List[Group],
    config: Configuration,
    leftover_ids: List[str],
) -> List[ArrangementWarning]:
    warnings = []
    for p in state.unmet_together():
        warnings.append(
            ArrangementWarning(
                kind=WarningKind.TOGETHER_UNSATISFIED,
                message=f"{p.a_id} and {p.b_id} could not be placed together",
                individual_ids=[p.a_id, p.b_id],
            )
        )
    for p in state.colocated_apart():
        g = groups[state.locate(p.a_id)]
        warnings.append(
            ArrangementWarning(
                kind=WarningKind.APART_UNSATISFIED,
                message=f"{p.a_id} and {p.b_id} are both in {g.display_name}",
                individual_ids=[p.a_id, p.b_id],
                group_id=g.id,
            )
        )
    for g in groups:
        if len(g.members) < config.min_per_group:
            warnings.append(
                ArrangementWarning(
                    kind=WarningKind.UNDER_MINIMUM,
                    message=f"{g.display_name} has {len(g.members)} member(s), below the minimum of {config.min_per_group}",
                    group_id=g.id,
                )
            )
    if leftover_ids:
        warnings.append(
            ArrangementWarning(
                kind=WarningKind.UNPLACED,
                message=f"{len(leftover_ids)} individual(s) could not be placed",
                individual_ids=leftover_ids,
            )
        )
    for w in warnings:
        logger.warning(w.message)
    return warnings

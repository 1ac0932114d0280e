# arranger/simulation/simulate.py
"""
Simulation script: builds a fake roster, adds random together/apart pairs,
locks a couple of placements and runs the arrangement through the service.

Uses the service directly (no HTTP calls).
"""

import logging
import random
from faker import Faker

from arranger.config.settings import settings
from arranger.domain.errors import ArrangementError
from arranger.domain.models import Category, Configuration, GenderPolicy, PairKind
from arranger.services.arrangement_service import ArrangementService

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

fake = Faker()
NUM_MALE = 13
NUM_FEMALE = 12
NUM_UNSPECIFIED = 2
TOGETHER_PAIRS = 3
APART_PAIRS = 3


def run_simulation(policy: GenderPolicy = GenderPolicy.BALANCED, seed: int = None):
    rng = random.Random(seed)
    service = ArrangementService()
    service.configure(Configuration(group_count=6, min_per_group=4, max_per_group=5, gender_policy=policy))

    service.add_individuals([fake.first_name_male() for _ in range(NUM_MALE)], Category.MALE)
    service.add_individuals([fake.first_name_female() for _ in range(NUM_FEMALE)], Category.FEMALE)
    service.add_individuals([fake.first_name() for _ in range(NUM_UNSPECIFIED)])
    roster = service.snapshot.roster

    # Random pairs; a pair clashing with the other set is simply skipped
    for kind, count in ((PairKind.TOGETHER, TOGETHER_PAIRS), (PairKind.APART, APART_PAIRS)):
        for _ in range(count):
            a, b = rng.sample(roster, 2)
            try:
                service.add_pair(kind, a.id, b.id)
            except ArrangementError as exc:
                logger.info("skipped pair %s/%s: %s", a.display_name, b.display_name, exc)

    # First run, then pin two people and run again
    service.arrange()
    for g in service.snapshot.groups[:2]:
        if g.members:
            service.toggle_lock(g.members[0].id)
    result = service.arrange()

    names = {i.id: i.display_name for i in service.snapshot.roster}
    for g in result.groups:
        members = ", ".join(
            f"{m.display_name}({m.category.value[0]}){'*' if m.locked else ''}" for m in g.members
        )
        print(f"{g.display_name} [{len(g.members)}]: {members}")
    if result.unplaced_ids:
        print("Unplaced: " + ", ".join(names[i] for i in result.unplaced_ids))
    for w in result.warnings:
        print(f"! {w.kind.value}: {w.message}")
    return result


if __name__ == "__main__":
    run_simulation()

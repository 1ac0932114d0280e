# tests/conftest.py
import pytest
from faker import Faker

from arranger.domain.models import Category, Individual

fake = Faker()

@pytest.fixture
def people():
    """Factory for a roster with readable ids: m0.., f0.., u0.."""

    def build(male=0, female=0, unspecified=0, **overrides):
        roster = []
        for prefix, count, category, name in (
            ("m", male, Category.MALE, fake.first_name_male),
            ("f", female, Category.FEMALE, fake.first_name_female),
            ("u", unspecified, Category.UNSPECIFIED, fake.first_name),
        ):
            for i in range(count):
                roster.append(Individual(id=f"{prefix}{i}", display_name=name(), category=category, **overrides))
        return roster

    return build

@pytest.fixture
def check_partition():
    """Every roster id ends up in at most one group; unplaced ids are the rest."""

    def check(roster, result, max_per_group):
        placed = [m.id for g in result.groups for m in g.members]
        assert len(placed) == len(set(placed))
        assert set(placed) | set(result.unplaced_ids) == {i.id for i in roster}
        assert not set(placed) & set(result.unplaced_ids)
        for g in result.groups:
            assert len(g.members) <= max_per_group

    return check

# arranger/domain/pools.py
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Optional, Protocol, TypeVar

from arranger.domain.models import Category, Individual

T = TypeVar("T")


class Shuffler(Protocol):
    def shuffle(self, items: Iterable[T]) -> List[T]:
        ...


class RandomShuffler:
    """
    Fisher-Yates shuffle backed by ``random.Random``.
    Without a seed the generator is seeded from OS entropy, so two runs differ.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def shuffle(self, items: Iterable[T]) -> List[T]:
        out = list(items)
        self.rng.shuffle(out)
        return out


@dataclass
class CategoryPools:
    male: Deque[Individual] = field(default_factory=deque)
    female: Deque[Individual] = field(default_factory=deque)
    unspecified: Deque[Individual] = field(default_factory=deque)

    def queue(self, category: Category) -> Deque[Individual]:
        if category == Category.MALE:
            return self.male
        if category == Category.FEMALE:
            return self.female
        return self.unspecified

    def __len__(self) -> int:
        return len(self.male) + len(self.female) + len(self.unspecified)

    def drain(self) -> List[Individual]:
        """Remove and return everyone still queued (male, female, unspecified)."""
        out = list(self.male) + list(self.female) + list(self.unspecified)
        self.male.clear()
        self.female.clear()
        self.unspecified.clear()
        return out


def build_pools(pool: Iterable[Individual], shuffler: Shuffler) -> CategoryPools:
    """Split the unlocked pool by category, each queue independently shuffled."""
    members = list(pool)
    return CategoryPools(
        male=deque(shuffler.shuffle(m for m in members if m.category == Category.MALE)),
        female=deque(shuffler.shuffle(m for m in members if m.category == Category.FEMALE)),
        unspecified=deque(shuffler.shuffle(m for m in members if m.category == Category.UNSPECIFIED)),
    )

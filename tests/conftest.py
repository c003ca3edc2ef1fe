import random

import pytest

from engine import MemoryGame
from tests.helpers import FakeClock, StaticSupplier


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def supplier():
    return StaticSupplier()


@pytest.fixture
def game(clock, supplier):
    return MemoryGame(supplier, clock=clock, rng=random.Random(7))

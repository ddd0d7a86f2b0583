import random

import pytest

from lottery.logic.settings import LotterySettings
from lottery.persistence.gateway import PersistenceGateway
from lottery.session.controller import RoundController
from lottery.tests.helpers import make_state
from lottery.tests.mocks import MemorySnapshotStorage


@pytest.fixture
def settings():
    return LotterySettings(rolling_interval_seconds=0.01)


@pytest.fixture
def storage():
    return MemorySnapshotStorage()


@pytest.fixture
def gateway(storage):
    return PersistenceGateway(storage)


@pytest.fixture
def controller(settings, gateway):
    return RoundController(make_state(), settings=settings, gateway=gateway, rng=random.Random(1234))

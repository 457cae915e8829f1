import pytest

from fakes import FakeBedrock, FakeCloudWatch, FakeTable, TickingClock
from services import Services


@pytest.fixture
def tables():
    return {
        "users": FakeTable(),
        "plans": FakeTable(),
        "budgets": FakeTable(),
        "assets": FakeTable(),
        "debts": FakeTable(),
        "user_versions": FakeTable(hash_key="userId", range_key="globalVersion"),
    }


@pytest.fixture
def bedrock():
    return FakeBedrock()


@pytest.fixture
def cloudwatch():
    return FakeCloudWatch()


@pytest.fixture
def services(tables, bedrock, cloudwatch):
    return Services.from_tables(tables, clock=TickingClock(), bedrock=bedrock, cloudwatch=cloudwatch)

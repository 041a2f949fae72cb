"""Shared fixtures: a temp-file SQLite database, an in-memory gateway and a controllable clock."""

import pytest
import pytest_asyncio

from AgoraPact.cogs.Governance.GovernanceLogic import GovernanceLogic
from AgoraPact.dto.GovernanceConfigDto import GovernanceConfigDto
from AgoraPact.share.DatabaseHandler import DatabaseHandler
from tests.fakes import FakeClock, FakeGateway, make_config_data


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway(clock: FakeClock) -> FakeGateway:
    return FakeGateway(clock)


@pytest.fixture
def governance_config() -> GovernanceConfigDto:
    return GovernanceConfigDto.model_validate(make_config_data())


@pytest_asyncio.fixture
async def db_handler(tmp_path):
    handler = DatabaseHandler(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    handler.initialize()
    await handler.init_db()
    yield handler
    await handler.close()


@pytest.fixture
def transitions() -> list:
    return []


@pytest.fixture
def logic(db_handler, gateway, governance_config, clock, transitions) -> GovernanceLogic:
    return GovernanceLogic(
        db_handler, gateway, governance_config, clock=clock, on_transition=transitions.append
    )

"""
Integration fixtures

Every test gets its own SQLite file under tmp_path and a fresh DI container whose
database provider points at it; use cases, the mock gateway and the notification
sink all run for real.
"""

from typing import AsyncIterator, List, Tuple

from dependency_injector import providers
import pytest

from box_office.platform.config.di import Container
from box_office.platform.database.orm_db_setting import AsyncEngineManager, Database
from box_office.service.marketplace.domain.entity.event_entity import Event
from box_office.service.marketplace.domain.entity.payment_method_entity import PaymentMethod
from box_office.service.marketplace.domain.entity.ticket_type_entity import TicketType
from tests.service.marketplace.integration.helpers import BUYER_ID, create_event, link_card


@pytest.fixture
async def database(tmp_path) -> AsyncIterator[Database]:
    engine_manager = AsyncEngineManager(url=f'sqlite+aiosqlite:///{tmp_path / "box_office.db"}')
    db = Database(engine_manager=engine_manager)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def container(database: Database) -> Container:
    container = Container()
    container.database.override(providers.Object(database))
    return container


@pytest.fixture
async def concert(container: Container) -> Tuple[Event, List[TicketType]]:
    """GA 15.00 x5 and VIP 25.00 x2"""
    return await create_event(container, ticket_types=[('GA', 1500, 5), ('VIP', 2500, 2)])


@pytest.fixture
async def buyer_card(container: Container) -> PaymentMethod:
    return await link_card(container, user_id=BUYER_ID)

"""Root conftest: test environment, structlog routing, and core fixtures."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from common.auth.service import IdentityService
from common.contacts import ContactGraph
from common.db import Database, SqliteMessageRepository, SqliteUserRepository
from common.store import MessageStore

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

TEST_SECRET = "test-secret"

# Route structlog through stdlib logging so caplog sees events.
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Prevent context leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def database(tmp_path):
    db = Database(tmp_path / "test.db")
    db.connect()
    yield db
    db.close()


@pytest.fixture
def store(database):
    return MessageStore(SqliteUserRepository(database), SqliteMessageRepository(database))


@pytest.fixture
def identity(store):
    return IdentityService(store, credential_secret=TEST_SECRET)


@pytest.fixture
def contacts(store):
    return ContactGraph(store)

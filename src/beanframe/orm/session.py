"""
Transactions
Binds one SQLAlchemy connection per transaction to the current context
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog
from sqlalchemy import Connection, Engine, create_engine

from ..settings import Settings, get_settings
from .markers import ORMError

logger = structlog.get_logger(__name__)

_current_connection: ContextVar[Connection | None] = ContextVar(
    "beanframe_connection", default=None
)


def create_engine_from_settings(settings: Settings | None = None) -> Engine:
    """Engine for ``settings.orm.database_url``"""
    config = (settings or get_settings()).orm
    return create_engine(config.database_url, echo=config.echo)


@contextmanager
def transaction(engine: Engine) -> Iterator[Connection]:
    """
    Run a block in a transaction

    Commits when the block completes, rolls back and re-raises otherwise.
    Repositories and create_table use the bound connection.
    """
    if engine is None:
        raise TypeError("engine is None")
    with engine.connect() as connection:
        token = _current_connection.set(connection)
        try:
            with connection.begin():
                yield connection
        except Exception:
            logger.warning("transaction_rolled_back", exc_info=True)
            raise
        finally:
            _current_connection.reset(token)


def current_connection() -> Connection:
    """Connection of the enclosing transaction"""
    connection = _current_connection.get()
    if connection is None:
        raise ORMError("Not in a transaction")
    return connection

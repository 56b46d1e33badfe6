from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import BigInteger, Integer, MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from entity_crud.config import DatasourceSettings, settings

# Naming conventions for database constraints, so generated schemas get
# predictable constraint names across environments.
NAMING_CONVENTION: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",  # Index
    "uq": "uq_%(table_name)s_%(column_0_name)s",  # Unique constraint
    "ck": "ck_%(table_name)s_%(constraint_name)s",  # Check constraint
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",  # Foreign key
    "pk": "pk_%(table_name)s",  # Primary key
}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Every entity exposed through a controller inherits from this class; the
    SQLAlchemy repository reads column metadata from ``__table__``.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
    # BIGINT everywhere; SQLite keeps INTEGER so primary keys alias the rowid
    type_annotation_map = {int: BigInteger().with_variant(Integer, "sqlite")}


def _connect_args(datasource: DatasourceSettings) -> dict[str, Any]:
    # asyncpg driver options are passed directly to asyncpg.connect()
    if "+asyncpg" in datasource.url:
        return {"command_timeout": datasource.statement_timeout}  # Kill slow queries
    return {}


# Async engine with connection pooling.
# The engine manages a pool of database connections that are reused across requests.
engine = create_async_engine(
    settings.datasource.url,
    pool_size=settings.datasource.pool_size,
    max_overflow=settings.datasource.max_overflow,
    pool_timeout=settings.datasource.pool_timeout,
    pool_recycle=settings.datasource.pool_recycle,
    pool_pre_ping=settings.datasource.pool_pre_ping,
    echo=settings.datasource.echo,
    connect_args=_connect_args(settings.datasource),
)

# expire_on_commit=False keeps objects usable after commit without re-querying,
# accessing expired attributes would otherwise trigger sync I/O.
async_session = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides a database session per request.

    Commits on success, rolls back on exception. This is the single place where
    transaction boundaries are managed; the controller and repositories only
    flush.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def shutdown() -> None:
    """Close all pooled database connections on application shutdown."""
    await engine.dispose()

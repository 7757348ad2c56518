"""Dialect-aware INSERT ... ON CONFLICT DO UPDATE for SQLModel rows."""

from typing import Iterable, Sequence, TypeVar

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


def _insert_for(session: AsyncSession):
    dialect = session.bind.dialect.name if session.bind else "sqlite"
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"upsert is not supported for dialect {dialect}")


def _upsert_statement(
    session: AsyncSession,
    model_cls: type[SQLModel],
    rows: Sequence[dict],
    keep_existing: Iterable[str] = (),
):
    table = model_cls.__table__  # type: ignore[attr-defined]
    conflict_keys = [c.name for c in table.primary_key.columns]
    keep = set(keep_existing) | set(conflict_keys)

    stmt = _insert_for(session)(table).values(list(rows))
    update_cols = {
        c.name: stmt.excluded[c.name] for c in table.columns if c.name not in keep
    }
    if not update_cols:
        return stmt.on_conflict_do_nothing(index_elements=conflict_keys)
    return stmt.on_conflict_do_update(index_elements=conflict_keys, set_=update_cols)


async def upsert(
    session: AsyncSession,
    model: ModelT,
    keep_existing: Iterable[str] = (),
    commit: bool = True,
) -> ModelT:
    """
    Insert a row, or update the existing row with the same primary key.

    Args:
        session: The async session to execute on.
        model: The SQLModel instance to write.
        keep_existing: Columns left untouched when the row already exists
            (e.g. created_at).
        commit: Commit the transaction after the statement.

    Returns:
        The model that was passed in.
    """
    stmt = _upsert_statement(
        session, type(model), [model.model_dump()], keep_existing=keep_existing
    )
    await session.exec(stmt)  # type: ignore[call-overload]
    if commit:
        await session.commit()
    return model


async def bulk_upsert(
    session: AsyncSession,
    models: Sequence[SQLModel],
    keep_existing: Iterable[str] = (),
) -> None:
    """Upsert many rows of the same model in one statement."""
    if not models:
        return
    stmt = _upsert_statement(
        session,
        type(models[0]),
        [m.model_dump() for m in models],
        keep_existing=keep_existing,
    )
    await session.exec(stmt)  # type: ignore[call-overload]
    await session.commit()

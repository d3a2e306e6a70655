"""
Order number sequence: atomic counter increment + display formatting.
"""

import logging

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from ..models import Counter, db

logger = logging.getLogger(__name__)

ORDER_SEQUENCE = "orderId"
ORDER_NUMBER_PREFIX = "MGV"
ORDER_NUMBER_WIDTH = 9
MAX_SEQUENCE_VALUE = 10 ** ORDER_NUMBER_WIDTH - 1

# dialects that support INSERT ... ON CONFLICT DO UPDATE ... RETURNING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def next_value(sequence_name: str) -> int:
    """
    Increment the named counter and return the new value, creating it at 1.

    Runs inside the caller's transaction: the row stays locked until the caller
    commits or rolls back, so two callers never see the same value.
    """
    table = Counter.__table__
    dialect = db.engine.dialect.name
    dialect_insert = _UPSERT_INSERTS.get(dialect)

    if dialect_insert is not None:
        stmt = (
            dialect_insert(table)
            .values(name=sequence_name, seq=1)
            .on_conflict_do_update(
                index_elements=[table.c.name],
                set_={"seq": table.c.seq + 1},
            )
            .returning(table.c.seq)
        )
        value = db.session.execute(stmt).scalar_one()
    else:
        value = _increment_portable(table, sequence_name)

    logger.debug("Sequence %s advanced to %s", sequence_name, value)
    return int(value)


def _increment_portable(table, sequence_name: str) -> int:
    bump = update(table).where(table.c.name == sequence_name).values(seq=table.c.seq + 1)
    if db.session.execute(bump).rowcount == 0:
        try:
            with db.session.begin_nested():
                db.session.execute(insert(table).values(name=sequence_name, seq=1))
            return 1
        except IntegrityError:
            # another request created the row first
            db.session.execute(bump)
    return db.session.execute(select(table.c.seq).where(table.c.name == sequence_name)).scalar_one()


def format_order_number(value: int) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Sequence value must be an integer, got {value!r}")
    if value < 0 or value > MAX_SEQUENCE_VALUE:
        raise ValueError(f"Sequence value {value} outside 0..{MAX_SEQUENCE_VALUE}")
    return f"{ORDER_NUMBER_PREFIX}{value:0{ORDER_NUMBER_WIDTH}d}"


def normalize_order_number(raw: str) -> str:
    return (raw or "").strip().upper()


def issue_order_number() -> str:
    return format_order_number(next_value(ORDER_SEQUENCE))

"""
Automatic database migration.
Adds columns declared on the models but missing from an existing SQLite database.
"""
import logging
from typing import Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from quota_console.database import engine as default_engine, Base
from quota_console import models  # noqa: F401  registers all tables on Base

logger = logging.getLogger("quota_console.migrations")

# First matching marker in the upper-cased SQLAlchemy type decides the affinity
SQLITE_AFFINITIES = (
    (("INT",), "INTEGER"),
    (("BOOL",), "INTEGER"),
    (("FLOAT", "NUMERIC", "REAL", "DOUBLE"), "REAL"),
)


def sqlalchemy_type_to_sqlite(sa_type) -> str:
    """SQLite column affinity for a SQLAlchemy type; text for everything else"""
    name = str(sa_type).upper()
    for markers, affinity in SQLITE_AFFINITIES:
        if any(marker in name for marker in markers):
            return affinity
    return "TEXT"


def get_default_value(column) -> str:
    """
    Literal SQL default for a column added by ALTER TABLE.

    Returns 'NULL' for columns without a constant default (callables such
    as datetime.now cannot be expressed as a constant).
    """
    default = column.default
    if default is None or not getattr(default, "is_scalar", False):
        return "NULL"

    value = default.arg
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return "NULL"


def build_add_column(table_name: str, column) -> str:
    sql = f'ALTER TABLE "{table_name}" ADD COLUMN "{column.name}" {sqlalchemy_type_to_sqlite(column.type)}'
    default_value = get_default_value(column)
    if default_value != "NULL":
        sql += f" DEFAULT {default_value}"
        # ALTER TABLE accepts NOT NULL only together with a default
        if not column.nullable:
            sql += " NOT NULL"
    return sql


def auto_migrate(bind: Optional[Engine] = None) -> int:
    """
    Bring an existing SQLite schema up to date with the models.

    Tables that do not exist yet are left to Base.metadata.create_all().
    Other database backends are skipped.

    Returns:
        Number of columns added
    """
    bind = bind or default_engine
    if bind.dialect.name != "sqlite":
        logger.info(f"Skipping automatic migration for dialect '{bind.dialect.name}'")
        return 0

    inspector = inspect(bind)
    existing_tables = set(inspector.get_table_names())
    added = 0

    for table_name, table in Base.metadata.tables.items():
        if table_name not in existing_tables:
            logger.warning(f"Table '{table_name}' is missing; create_all() will create it")
            continue

        present = {column["name"] for column in inspector.get_columns(table_name)}
        for column in table.columns:
            if column.name in present:
                continue
            statement = build_add_column(table_name, column)
            logger.info(f"Adding column {table_name}.{column.name}")
            logger.debug(statement)
            try:
                with bind.begin() as conn:
                    conn.execute(text(statement))
            except OperationalError as e:
                logger.error(f"Failed to add column {table_name}.{column.name}: {e}")
                continue
            added += 1

    if added:
        logger.info(f"Schema migration added {added} column(s)")
    else:
        logger.info("Schema is up to date")
    return added


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=default_engine)
    auto_migrate()

"""Schema-level DDL that the ORM metadata cannot express on its own.

Attached to the model metadata so ``Base.metadata.create_all`` produces the
same objects as the initial Alembic revision.
"""

from sqlalchemy import DDL, event

from core.config import APP_SCHEMA, LAYER_SCHEMA
from db.base import Base

UPDATED_AT_FUNCTION = f"{APP_SCHEMA}.update_updated_at_column"

CREATE_UPDATED_AT_FUNCTION = f"""
CREATE OR REPLACE FUNCTION {UPDATED_AT_FUNCTION}()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""


def create_updated_at_trigger(table: str, schema: str = APP_SCHEMA) -> str:
    """Return the statement attaching the updated_at trigger to ``schema.table``."""
    return (
        f"CREATE TRIGGER update_{table}_updated_at "
        f"BEFORE UPDATE ON {schema}.{table} "
        f"FOR EACH ROW EXECUTE FUNCTION {UPDATED_AT_FUNCTION}()"
    )


event.listen(
    Base.metadata,
    "before_create",
    DDL(f"CREATE SCHEMA IF NOT EXISTS {APP_SCHEMA}").execute_if(dialect="postgresql"),
)
event.listen(
    Base.metadata,
    "before_create",
    DDL(f"CREATE SCHEMA IF NOT EXISTS {LAYER_SCHEMA}").execute_if(dialect="postgresql"),
)
event.listen(
    Base.metadata,
    "before_create",
    DDL(CREATE_UPDATED_AT_FUNCTION).execute_if(dialect="postgresql"),
)

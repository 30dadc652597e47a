"""ORM model for the gridwalk.layers table."""

from sqlalchemy import DDL, Column, FetchedValue, event, text
from sqlalchemy.dialects.postgresql import BIGINT, TIMESTAMP, UUID, VARCHAR

from core.config import APP_SCHEMA
from db.base import Base
from db.ddl import create_updated_at_trigger


class Layer(Base):
    """Upload progress of one geospatial layer.

    ``status`` is an open string at the database level; the API restricts
    writes to :class:`models.layer.LayerStatus`. ``current_offset`` is not
    checked against ``total_size`` here either.
    """

    __tablename__ = "layers"
    __table_args__ = {"schema": APP_SCHEMA}
    __mapper_args__ = {"eager_defaults": True}

    # Supplied by the caller, no server-side generator.
    id = Column(UUID(as_uuid=True), primary_key=True)
    status = Column(VARCHAR(50), nullable=False)
    name = Column(VARCHAR(255), nullable=False)
    upload_type = Column(VARCHAR(100), nullable=True)
    total_size = Column(BIGINT, nullable=False, server_default=text("0"))
    current_offset = Column(BIGINT, nullable=False, server_default=text("0"))
    created_at = Column(TIMESTAMP(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    # Rewritten by the update_layers_updated_at trigger on every UPDATE.
    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        server_onupdate=FetchedValue(),
    )

    def __repr__(self) -> str:
        return f"<Layer id={self.id} name={self.name!r} status={self.status!r}>"


event.listen(
    Layer.__table__,
    "after_create",
    DDL(create_updated_at_trigger("layers")).execute_if(dialect="postgresql"),
)

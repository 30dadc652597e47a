"""Persistence operations for the gridwalk.layers registry."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from db.models.layer import Layer
from models.layer import LayerUpdate, LayerUpsert

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class LayerOffsetError(ValueError):
    """Raised when an update would leave current_offset beyond total_size."""


def build_upsert(layer_id: UUID, payload: LayerUpsert):
    """Return the INSERT ... ON CONFLICT (id) DO UPDATE statement for a layer.

    ``created_at`` keeps its original value on conflict; ``updated_at`` is left
    to the database trigger.
    """
    values = payload.model_dump()
    stmt = insert(Layer).values(id=layer_id, **values)
    return stmt.on_conflict_do_update(
        index_elements=[Layer.id],
        set_={column: stmt.excluded[column] for column in values},
    ).returning(Layer)


async def save_layer(db: AsyncSession, layer_id: UUID, payload: LayerUpsert) -> Layer:
    """Insert the layer or overwrite the existing row with the same id."""
    result = await db.scalars(
        build_upsert(layer_id, payload),
        execution_options={"populate_existing": True},
    )
    layer = result.one()
    await db.commit()
    logger.info("Saved layer %s (status=%s)", layer_id, payload.status)
    return layer


async def get_layer(db: AsyncSession, layer_id: UUID) -> Optional[Layer]:
    result = await db.execute(select(Layer).where(Layer.id == layer_id))
    return result.scalars().first()


async def list_layers(
    db: AsyncSession, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
) -> List[Layer]:
    """Return a page of layers, newest first."""
    result = await db.execute(
        select(Layer).order_by(Layer.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def update_layer(
    db: AsyncSession, layer_id: UUID, payload: LayerUpdate
) -> Optional[Layer]:
    """Apply the fields set on ``payload`` to an existing layer.

    Returns ``None`` when the layer does not exist. Raises
    :class:`LayerOffsetError` if the merged row would have
    ``current_offset > total_size``; nothing is written in that case.
    """
    layer = await get_layer(db, layer_id)
    if layer is None:
        return None

    updates = payload.model_dump(exclude_unset=True)
    total_size = updates.get("total_size", layer.total_size)
    current_offset = updates.get("current_offset", layer.current_offset)
    if current_offset > total_size:
        raise LayerOffsetError(
            f"current_offset {current_offset} exceeds total_size {total_size}"
        )

    for key, value in updates.items():
        setattr(layer, key, value)

    await db.commit()
    await db.refresh(layer)
    return layer


async def delete_layer(db: AsyncSession, layer_id: UUID) -> bool:
    """Delete a layer row; returns whether one was removed."""
    result = await db.execute(delete(Layer).where(Layer.id == layer_id))
    await db.commit()
    removed = result.rowcount > 0
    if removed:
        logger.info("Deleted layer %s", layer_id)
    return removed

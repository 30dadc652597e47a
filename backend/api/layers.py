"""Registry and tile endpoints for layers."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import LAYER_GEOMETRY_COLUMN, LAYER_SCHEMA
from db.session import get_session
from models.layer import LayerRead, LayerUpdate, LayerUpsert
from services import layer_store, tiles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/layers", tags=["layers"])

MVT_MEDIA_TYPE = "application/vnd.mapbox-vector-tile"


@router.get("", response_model=list[LayerRead])
async def list_layers(
    limit: int = Query(layer_store.DEFAULT_PAGE_SIZE, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
) -> list[LayerRead]:
    """List layers, newest first."""
    layers = await layer_store.list_layers(db, limit=limit, offset=offset)
    return [LayerRead.model_validate(item) for item in layers]


@router.get("/{layer_id}", response_model=LayerRead)
async def get_layer(
    layer_id: UUID,
    db: AsyncSession = Depends(get_session),
) -> LayerRead:
    """Fetch a layer by id."""
    layer_obj = await layer_store.get_layer(db, layer_id)
    if not layer_obj:
        raise HTTPException(status_code=404, detail="Layer not found")
    return LayerRead.model_validate(layer_obj)


@router.put("/{layer_id}", response_model=LayerRead)
async def put_layer(
    layer_id: UUID,
    payload: LayerUpsert,
    db: AsyncSession = Depends(get_session),
) -> LayerRead:
    """Create the layer with the given id or replace its fields."""
    layer_obj = await layer_store.save_layer(db, layer_id, payload)
    return LayerRead.model_validate(layer_obj)


@router.patch("/{layer_id}", response_model=LayerRead)
async def update_layer(
    layer_id: UUID,
    payload: LayerUpdate,
    db: AsyncSession = Depends(get_session),
) -> LayerRead:
    """Update a layer."""
    layer_obj = await layer_store.update_layer(db, layer_id, payload)
    if not layer_obj:
        raise HTTPException(status_code=404, detail="Layer not found")
    return LayerRead.model_validate(layer_obj)


@router.delete("/{layer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_layer(
    layer_id: UUID,
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Delete a layer."""
    if not await layer_store.delete_layer(db, layer_id):
        raise HTTPException(status_code=404, detail="Layer not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{layer_id}/tiles/{z}/{x}/{y}")
async def get_tile(
    layer_id: UUID,
    z: int = Path(..., ge=0),
    x: int = Path(..., ge=0),
    y: int = Path(..., ge=0),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Serve one Mapbox Vector Tile of a layer's data."""
    try:
        tiles.validate_tile(z, x, y)
    except tiles.InvalidTileError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if not await layer_store.get_layer(db, layer_id):
        raise HTTPException(status_code=404, detail="Layer not found")

    try:
        data = await tiles.get_tile(
            db, layer_id, z, x, y, schema=LAYER_SCHEMA, geometry_column=LAYER_GEOMETRY_COLUMN
        )
    except ProgrammingError as exc:
        # Typically the layer's data table has not been created yet
        logger.warning("Tile query failed for layer %s: %s", layer_id, exc)
        await db.rollback()
        raise HTTPException(status_code=404, detail="Layer data not found")

    if not data:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return Response(
        content=data,
        media_type=MVT_MEDIA_TYPE,
        headers={"Cache-Control": "public, max-age=3600"},
    )

"""Mapbox Vector Tile rendering from per-layer PostGIS tables."""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import TextClause

logger = logging.getLogger(__name__)

MAX_ZOOM = 24
TILE_EXTENT = 4096
TILE_BUFFER = 64

_preparer = postgresql.dialect().identifier_preparer


class InvalidTileError(ValueError):
    """Raised for tile coordinates outside the Web Mercator tile pyramid."""


def validate_tile(z: int, x: int, y: int) -> None:
    if not 0 <= z <= MAX_ZOOM:
        raise InvalidTileError(f"Zoom level {z} is outside 0..{MAX_ZOOM}")
    limit = 2**z
    if not (0 <= x < limit and 0 <= y < limit):
        raise InvalidTileError(f"Tile {x}/{y} does not exist at zoom {z}")


def layer_table_name(schema: str, layer_id: UUID) -> str:
    """Return the quoted ``schema.table`` reference for a layer's data table."""
    return f"{_preparer.quote_schema(schema)}.{_preparer.quote(str(layer_id))}"


def build_tile_query(layer_id: UUID, schema: str, geometry_column: str) -> TextClause:
    """Build the MVT query for one tile of a layer.

    Features are clipped to the tile envelope; every non-geometry column is
    exported as a feature property. Bind parameters: ``z``, ``x``, ``y``.
    """
    table = layer_table_name(schema, layer_id)
    geom = _preparer.quote(geometry_column)
    layer_name = str(layer_id)
    return text(
        f"""
        WITH bounds AS (
            SELECT ST_TileEnvelope(
                CAST(:z AS integer), CAST(:x AS integer), CAST(:y AS integer)
            ) AS envelope
        ),
        features AS (
            SELECT
                ST_AsMVTGeom(
                    ST_Transform(src.{geom}, 3857),
                    bounds.envelope,
                    {TILE_EXTENT},
                    {TILE_BUFFER},
                    true
                ) AS mvt_geom,
                to_jsonb(src) - CAST(:geometry_column AS text) AS properties
            FROM {table} AS src, bounds
            WHERE ST_Transform(src.{geom}, 3857) && bounds.envelope
        )
        SELECT ST_AsMVT(features, CAST(:layer_name AS text), {TILE_EXTENT}, 'mvt_geom')
        FROM features
        """
    ).bindparams(geometry_column=geometry_column, layer_name=layer_name)


async def get_tile(
    db: AsyncSession,
    layer_id: UUID,
    z: int,
    x: int,
    y: int,
    schema: str,
    geometry_column: str,
) -> bytes:
    """Render one tile; returns empty bytes when no feature intersects it."""
    validate_tile(z, x, y)
    query = build_tile_query(layer_id, schema, geometry_column)
    result = await db.execute(query, {"z": z, "x": x, "y": y})
    data = result.scalar()
    return bytes(data) if data else b""


async def list_layer_tables(db, schema: str) -> List[str]:
    """Return the names of the tables in the layer data schema."""
    result = await db.execute(
        text(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = :schema ORDER BY table_name"
        ),
        {"schema": schema},
    )
    return [row[0] for row in result]


async def layer_schema_exists(db, schema: str) -> bool:
    result = await db.execute(
        text("SELECT 1 FROM information_schema.schemata WHERE schema_name = :schema"),
        {"schema": schema},
    )
    return result.first() is not None

import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Load environment variables from .env file
# Load .env.local first (for local development), then .env (fallback)
load_dotenv(".env.local", override=True)  # Local development overrides
load_dotenv()  # Load .env if exists (won't override existing vars)
# General config in a central place


def _env_bool(name: str, default: str = "false") -> bool:
    """Parse a boolean-like environment variable.

    Accepts a broad set of truthy values to be user-friendly.
    """
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on", "y"}


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r} is not an integer") from None


# CORS configuration
# Comma-separated list of allowed origins; if empty, allow all (not recommended with credentials)
RAW_ALLOWED_ORIGINS = os.getenv("ALLOWED_CORS_ORIGINS", "")
ALLOWED_CORS_ORIGINS = [o.strip() for o in RAW_ALLOWED_ORIGINS.split(",") if o.strip()]


# Database

# Schema owning the layer registry table; fixed by the initial migration.
APP_SCHEMA = "gridwalk"

# Schema holding one data table per layer, named by the layer id.
LAYER_SCHEMA = os.getenv("LAYER_SCHEMA", "gridwalk_layer_data")
LAYER_GEOMETRY_COLUMN = os.getenv("LAYER_GEOMETRY_COLUMN", "geom")

DATABASE_DISABLE_SSL = _env_bool("DATABASE_DISABLE_SSL")
DATABASE_MAX_CONNECTIONS = _env_int("DATABASE_MAX_CONNECTIONS", "20")

# Apply pending Alembic revisions when the API starts.
RUN_MIGRATIONS_ON_STARTUP = _env_bool("RUN_MIGRATIONS_ON_STARTUP", default="true")


def build_database_url() -> Optional[str]:
    """Return the database URL from the environment.

    ``DATABASE_URL`` wins when set. Otherwise the URL is assembled from
    ``DATABASE_USER``, ``DATABASE_PASSWORD``, ``DATABASE_HOST``,
    ``DATABASE_NAME`` and ``DATABASE_PORT``; ``None`` is returned when any
    required component is missing.
    """
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    parts = {
        name: os.getenv(name)
        for name in ("DATABASE_USER", "DATABASE_PASSWORD", "DATABASE_HOST", "DATABASE_NAME")
    }
    if not all(parts.values()):
        return None

    port = _env_int("DATABASE_PORT", "5432")
    if not 0 < port < 65536:
        raise ValueError(f"Invalid value for DATABASE_PORT: {port} is out of range")

    url = URL.create(
        "postgresql",
        username=parts["DATABASE_USER"],
        password=parts["DATABASE_PASSWORD"],
        host=parts["DATABASE_HOST"],
        port=port,
        database=parts["DATABASE_NAME"],
    )
    return url.render_as_string(hide_password=False)


# Database connection URL
DATABASE_URL = build_database_url()

"""Registry persistence, tile rendering and migrations."""

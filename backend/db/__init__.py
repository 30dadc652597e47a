"""Database engine, ORM base and models."""

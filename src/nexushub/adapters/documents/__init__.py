"""Document store adapters (in-memory and SQLAlchemy)."""

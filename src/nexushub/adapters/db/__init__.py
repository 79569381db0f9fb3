"""Database plumbing: engine factory, metadata, portable types, migrations."""

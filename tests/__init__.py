"""NexusHub test suite.

Folder taxonomy
- unit/         : Fast checks of one module; in-memory store, no real I/O.
- contract/     : Behavior every implementation of a port must share
                  (collection accessors, id generators).
- integration/  : Real SQLite files and, when Docker is up, PostgreSQL.
- e2e/          : The HTTP API through FastAPI's TestClient and the CLI
                  through Click's CliRunner.
- functional/   : Operator workflows at the CLI boundary.
- fixtures/     : Fixture plugins loaded from the top-level conftest.

Markers are applied per folder by the folder's conftest.
"""

"""Bootstrap (composition root) for NexusHub.

Assembles the application at runtime: wires concrete adapters (document
store, id generator, content collaborators) to the service-layer handlers and
hands entrypoints an `AppContainer` that builds a fresh unit of work and
message bus per request.

Import rules:
- Entry points import *this* package (not adapters/service_layer/interfaces/domain).
- This package may import: `nexushub.adapters`, `nexushub.service_layer`,
  `nexushub.interfaces`, `nexushub.domain`, and `nexushub.config`.
- Inner layers must not import `nexushub.bootstrap`.

Public surface:
- Re-export composition factories from this module; keep wiring helpers internal.
- No business rules live here; this is assembly and lifecycle only.
"""

from .bootstrap import (
    AppContainer,
    bootstrap,
    bootstrap_memory,
    bootstrap_sql,
    build_message_bus,
    inject_dependencies,
)

__all__ = [
    "AppContainer",
    "bootstrap",
    "bootstrap_memory",
    "bootstrap_sql",
    "build_message_bus",
    "inject_dependencies",
]

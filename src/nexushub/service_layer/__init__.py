"""Service layer for NexusHub.

Implements application use-cases: commands, the message bus, the unit-of-work
coordinator, the notification emitter, command handlers and read-side views.

Dependency rule: may import `nexushub.domain` and `nexushub.interfaces`, but
not `nexushub.adapters` or `nexushub.entrypoints`.
"""

"""Interfaces (application boundary) for NexusHub.

Defines framework-free application contracts: ABCs and small DTOs shared by
the service layer and adapters (collection accessors, the unit of work, ID
generators, content moderation and categorization collaborators). Business
rules stay out of this package.

Dependency rule: may import `nexushub.domain` for document types; never
`nexushub.adapters`, `nexushub.service_layer` or `nexushub.entrypoints`.
"""

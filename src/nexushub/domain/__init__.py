"""Domain layer for NexusHub.

Contains business rules: documents (users, communities, posts, comments,
events, reports, notifications), value objects and domain errors. This
package is deliberately technology-agnostic.

Dependency rule: do not import from `nexushub.adapters` or `nexushub.entrypoints`.
"""

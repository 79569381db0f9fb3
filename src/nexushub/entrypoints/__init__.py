"""Entrypoints (inbound adapters) for NexusHub.

Expose the application to the outside world: the HTTP API and the CLI.
Parse and validate inputs, dispatch commands on the message bus, and present
results.

Dependency rule: may import `nexushub.service_layer` and `nexushub.bootstrap`;
avoid importing `nexushub.adapters` directly.
"""

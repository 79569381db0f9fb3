"""Command-line entrypoint for NexusHub."""

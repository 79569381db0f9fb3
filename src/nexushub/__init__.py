"""NexusHub

A social-community back end: users create posts, comments, events and
communities, content can be reported and moderated, and notifications are
issued. Multi-collection writes are coordinated as ordered units of work
over a document store.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"

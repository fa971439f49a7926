"""Persistence, consistency and authorization core for the classroom site.

Intent:
    Keep the site document, the user list and the blob store consistent
    across multi-step operations, and gate mutations by the caller's session.
    Presentation layers call into `ClassroomCore` and render the snapshots it
    publishes.
"""

__all__ = ["__version__"]

__version__ = "0.3.0"

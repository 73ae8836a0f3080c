"""
Adapters package for the dashboard client.

Contains the wrappers around things outside the process:

- The remote revenue API (bearer auth, envelope unwrapping, typed errors)
- The persisted session (token and signed-in user)

Keep adapters thin and side-effect free outside of explicit calls; the
one deliberate side effect is clearing the session on a 401.
"""

from .gateway import RemoteDataGateway
from .session_store import FileSessionStore, MemorySessionStore, SessionStore, get_session_store

__all__ = [
    "RemoteDataGateway",
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "get_session_store",
]

"""
Authentication helpers for the dashboard client.
"""

from .session import AuthSession

__all__ = [
    "AuthSession",
]

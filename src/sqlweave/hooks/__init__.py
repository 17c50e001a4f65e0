"""
Event hook exports.
"""

from .dispatcher import HookDispatcher, HookHandler, hooks

__all__ = ["HookDispatcher", "HookHandler", "hooks"]

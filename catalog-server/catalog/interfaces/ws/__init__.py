"""Websocket push channel."""

from .notifier import ChangeNotifier, MutationAction, MutationEvent

__all__ = ["ChangeNotifier", "MutationAction", "MutationEvent"]

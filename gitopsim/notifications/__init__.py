"""State-change notifications for the rendering layer.

Exports:
    StateListener         -- Abstract base for subscribers.
    CallbackListener      -- Callable adapter with optional topic filter.
    StateChangeDispatcher -- Error-isolating synchronous fan-out.
"""

from gitopsim.notifications.manager import CallbackListener, StateChangeDispatcher, StateListener

__all__ = ["CallbackListener", "StateChangeDispatcher", "StateListener"]

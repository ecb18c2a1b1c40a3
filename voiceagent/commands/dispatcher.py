"""Dispatch resolved action tokens to host-registered handlers."""

import logging
from typing import Callable, Dict, Optional

from ..errors import UnknownAction
from ..models.commands import Action
from ..models.events import ActionEvent
from .publisher import ActionPublisher

logger = logging.getLogger(__name__)

ActionHandler = Callable[[], None]


class ActionDispatcher:
    """Invokes exactly one handler per dispatch, defaulting to IDLE."""

    def __init__(self,
                 handlers: Optional[Dict[Action, ActionHandler]] = None,
                 publisher: Optional[ActionPublisher] = None):
        """Initialize action dispatcher.

        Args:
            handlers: Zero-argument callbacks keyed by action
            publisher: Optional publisher notified of every dispatch
        """
        self.handlers: Dict[Action, ActionHandler] = dict(handlers or {})
        self.publisher = publisher
        self.dispatch_count = 0

    def register(self, action: Action, handler: ActionHandler) -> None:
        """Register (or replace) the handler for an action."""
        self.handlers[action] = handler
        logger.debug(f"Handler registered for {action.value}")

    def dispatch(self, token: str) -> Action:
        """Dispatch a resolved token. Unknown tokens dispatch IDLE.

        Returns:
            The action that was actually dispatched
        """
        try:
            action = Action.parse(token)
        except UnknownAction as e:
            logger.warning(f"{e}; defaulting to {Action.IDLE.value}")
            self._invoke(ActionEvent(action=Action.IDLE, token=token, fallback=True, reason=str(e)))
            return Action.IDLE

        self._invoke(ActionEvent(action=action, token=token))
        return action

    def dispatch_fallback(self, reason: str) -> Action:
        """Dispatch the IDLE safe default after a failed resolution."""
        logger.warning(f"Resolution failed ({reason}); defaulting to {Action.IDLE.value}")
        self._invoke(ActionEvent(action=Action.IDLE, token=None, fallback=True, reason=reason))
        return Action.IDLE

    def _invoke(self, event: ActionEvent) -> None:
        self.dispatch_count += 1
        handler = self.handlers.get(event.action)
        if handler is None:
            logger.warning(f"No handler registered for {event.action.value}")
        else:
            logger.info(f"Executing action: {event.action.value}")
            try:
                handler()
            except Exception as e:
                logger.error(f"Handler for {event.action.value} failed: {e}", exc_info=True)

        if self.publisher:
            self.publisher.publish_action_event(event)

"""
Message bus connecting the document context with presentation contexts.

The bus is the context boundary. Every posted message is serialized to a
JSON envelope and parsed again for each listener, so listeners never share
objects with the sender and nothing that is not plain data can cross.
"""

import json
import logging
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional

from .messages import Message, parse_message

logger = logging.getLogger(__name__)

Listener = Callable[[Message], Awaitable[None]]


class MessageBus:
    """
    Typed message bus with per-type subscriptions.

    Failing listeners are logged and, after ``max_listener_errors`` failures,
    removed so that one broken surface cannot wedge the others. Only the
    last ``history_limit`` envelopes are kept in ``history``.
    """

    def __init__(self, max_listener_errors: int = 5, history_limit: int = 1000):
        self.history: Deque[Dict[str, Any]] = deque(maxlen=history_limit)
        self.listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._listener_errors: Dict[str, int] = defaultdict(int)
        self._max_listener_errors = max_listener_errors

    async def post(self, message: Message) -> None:
        """Serialize a message and deliver it to every listener for its type."""
        await self.post_raw(message.to_wire())

    async def post_raw(self, envelope: Any) -> None:
        """
        Deliver an untrusted envelope.

        Envelopes that are not JSON-serializable, have an unknown type or a
        malformed payload are dropped.
        """
        try:
            wire = json.dumps(envelope)
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping envelope that is not JSON-serializable: {e}")
            return

        decoded = json.loads(wire)
        self.history.append(decoded)
        if parse_message(decoded) is None:
            return

        message_type = decoded["type"]
        for listener in list(self.listeners.get(message_type, [])):
            # Each listener gets its own copy
            message = parse_message(json.loads(wire))
            try:
                await listener(message)
            except Exception as e:
                listener_id = f"{message_type}:{id(listener)}"
                self._listener_errors[listener_id] += 1

                logger.error(f"Error in message listener for {message_type}: {e}")

                if self._listener_errors[listener_id] >= self._max_listener_errors:
                    logger.warning(
                        f"Removing failing listener for {message_type} after {self._max_listener_errors} errors"
                    )
                    self.unsubscribe(message_type, listener)

    def subscribe(self, message_type: str, listener: Listener) -> None:
        """
        Subscribe to messages of a specific type.

        Args:
            message_type: Envelope type, e.g. ``"scan-result"``
            listener: Async callable receiving the parsed message
        """
        if listener not in self.listeners[message_type]:
            self.listeners[message_type].append(listener)
            logger.debug(f"Subscribed listener to {message_type}")

    def unsubscribe(self, message_type: str, listener: Listener) -> None:
        if listener in self.listeners.get(message_type, []):
            self.listeners[message_type].remove(listener)
            logger.debug(f"Unsubscribed listener from {message_type}")

    def clear_listeners(self, message_type: Optional[str] = None) -> None:
        if message_type:
            self.listeners.pop(message_type, None)
        else:
            self.listeners.clear()
            self._listener_errors.clear()

    def get_message_count(self, message_type: Optional[str] = None) -> int:
        """Number of envelopes posted, optionally of one type."""
        if message_type:
            return sum(1 for m in self.history if isinstance(m, dict) and m.get("type") == message_type)
        return len(self.history)

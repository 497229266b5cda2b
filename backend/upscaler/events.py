import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

PROCESS_COMPLETE = "processComplete"

Listener = Callable[[Any], None]


class EventBus:
    """Named-event publish/subscribe.

    Listeners run synchronously in subscription order. A failing listener is
    logged and does not stop the others or the publisher.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, name: str, listener: Listener) -> Callable[[], None]:
        self._listeners[name].append(listener)

        def unsubscribe():
            self.unsubscribe(name, listener)

        return unsubscribe

    def unsubscribe(self, name: str, listener: Listener) -> None:
        try:
            self._listeners[name].remove(listener)
        except ValueError:
            pass

    def emit(self, name: str, payload: Any = None) -> int:
        listeners = list(self._listeners.get(name, ()))
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener for %s failed", name)
        return len(listeners)


# Shared by every component in the process that is not given its own bus
bus = EventBus()

# =======================================================================================
# authintegrate/services/event_bus.py - In-process Publish/Subscribe
# =======================================================================================
import inspect
import logging
from typing import Any, Callable, Dict, List, Union

from ..models.enums import Topic

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], Any]


class EventBus:
    """
    In-process pub/sub keyed by topic.

    Subscribers run one after another in registration order; coroutine
    subscribers are awaited before the next one is called. Nothing is
    buffered, so a subscriber added after a publish never sees it.
    """

    def __init__(self):
        self._subs: Dict[Topic, List[Subscriber]] = {topic: [] for topic in Topic}

    @staticmethod
    def _topic(name: Union[str, Topic]) -> Topic:
        try:
            return Topic(name)
        except ValueError:
            raise ValueError(f"Unknown topic: {name!r}")

    def subscribe(self, topic: Union[str, Topic], callback: Subscriber) -> None:
        self._subs[self._topic(topic)].append(callback)

    def unsubscribe(self, topic: Union[str, Topic], callback: Subscriber) -> None:
        subs = self._subs[self._topic(topic)]
        if callback in subs:
            subs.remove(callback)

    def subscriber_count(self, topic: Union[str, Topic]) -> int:
        return len(self._subs[self._topic(topic)])

    async def publish(self, topic: Union[str, Topic], payload: Any) -> int:
        """Deliver ``payload`` to every current subscriber. Returns how many ran cleanly."""
        topic = self._topic(topic)
        delivered = 0
        # snapshot: callbacks may (un)subscribe while we iterate
        for callback in list(self._subs[topic]):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                logger.exception("Subscriber %r failed on %s", callback, topic.value)
        return delivered

    def clear(self) -> None:
        """Drop all subscriptions (app shutdown)."""
        for subs in self._subs.values():
            subs.clear()

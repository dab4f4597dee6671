import asyncio
import inspect
from collections.abc import Awaitable, Callable

from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction

logger = get_logger(__name__)

Listener = Callable[[Transaction], Awaitable[None] | None]


class Subscription:
    def __init__(self, feed: "TransactionFeed", listener: Listener):
        self._feed = feed
        self.listener = listener
        self.active = True

    def close(self) -> None:
        if self.active:
            self._feed._remove(self)
            self.active = False


class TransactionFeed:
    """In-process fan-out of committed inserts.

    Listeners are scheduled on the running event loop after ``publish``
    returns, so a slow or failing listener never delays the insert path.
    Delivery is best-effort: nothing is replayed for late subscribers.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: Listener) -> Subscription:
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def publish(self, transaction: Transaction) -> None:
        if not self._subscriptions:
            return
        loop = asyncio.get_running_loop()
        for subscription in list(self._subscriptions):
            loop.call_soon(self._deliver, subscription, transaction)

    def _deliver(self, subscription: Subscription, transaction: Transaction) -> None:
        if not subscription.active:
            return
        try:
            result = subscription.listener(transaction)
        except Exception as exc:
            logger.error("[FEED] Listener failed for transaction %s: %s", transaction.id, exc)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("[FEED] Async listener failed: %s", task.exception())

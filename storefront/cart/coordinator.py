"""
Quantity Update Coordinator

Turns a burst of quantity changes coming from the cart UI into the smallest
sequence of cart service calls that still persists what the user asked for.

Per line item:
- requested quantities are queued as PendingUpdate values;
- one drain task owns the queue; it sends only the last queued quantity
  and never has more than one request in flight;
- quantities queued while a request is in flight are picked up by the same
  drain once that request settles;
- a failed update notifies the user once, drops the unsent quantities and
  re-reads the cart from the service.

Different line items drain independently and may overlap freely.
Everything runs on one event loop, so the queues and marker sets need no
locks; the in-flight set is what serializes requests per line item.
"""
import asyncio
import inspect
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from storefront.errors import ERROR_CART_UPDATE_FAILED
from storefront.logging import get_logger, sanitize_id_for_logging

from .client import CartApiClient
from .exceptions import CartServiceError
from .models import CartSnapshot, CartSummary, PendingUpdate
from .ordering import stable_snapshot

logger = get_logger(__name__)

Notifier = Callable[[str], Union[None, Awaitable[None]]]
SnapshotListener = Callable[[CartSnapshot], Any]
PendingListener = Callable[[frozenset], Any]


class QuantityUpdateCoordinator:
    """
    Coalesces and serializes quantity updates per cart line item.

    Usage:
        coordinator = QuantityUpdateCoordinator(client, notify=show_toast)
        await coordinator.load()
        coordinator.request_quantity_change(item_id, 3)  # returns at once
        coordinator.subscribe(render_cart)
    """

    def __init__(
        self,
        client: CartApiClient,
        *,
        notify: Optional[Notifier] = None,
        initial: Optional[CartSnapshot] = None,
    ):
        self._client = client
        self._notify = notify
        self._snapshot = stable_snapshot(initial) if initial else CartSnapshot.empty()

        self._queues: Dict[str, List[PendingUpdate]] = {}
        self._in_flight: Set[str] = set()
        self._pending: Set[str] = set()
        self._drains: Dict[str, asyncio.Task] = {}

        self._listeners: List[SnapshotListener] = []
        self._pending_listeners: List[PendingListener] = []

    # ==================== STATE ====================

    @property
    def snapshot(self) -> CartSnapshot:
        """Cart as currently displayed, items in stable order."""
        return self._snapshot

    @property
    def summary(self) -> CartSummary:
        return self._snapshot.summary

    @property
    def pending_ids(self) -> frozenset:
        """Line items with queued or in-flight updates."""
        return frozenset(self._pending)

    @property
    def in_flight_ids(self) -> frozenset:
        return frozenset(self._in_flight)

    def is_pending(self, line_item_id: str) -> bool:
        return line_item_id in self._pending

    def queued_quantities(self, line_item_id: str) -> List[int]:
        return [update.quantity for update in self._queues.get(line_item_id, [])]

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call `listener(snapshot)` on every snapshot replacement. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def subscribe_pending(self, listener: PendingListener) -> Callable[[], None]:
        """Call `listener(pending_ids)` whenever the pending set changes."""
        self._pending_listeners.append(listener)
        return lambda: self._pending_listeners.remove(listener)

    # ==================== PUBLIC OPERATIONS ====================

    async def load(self) -> CartSnapshot:
        """Fetch the cart from the service and display it."""
        snapshot = await self._client.fetch_cart()
        self._replace_snapshot(snapshot)
        return self._snapshot

    def request_quantity_change(self, line_item_id: str, new_quantity: int) -> None:
        """
        Queue a new quantity for a line item.

        Fire and forget: the result shows up through `snapshot` and the
        subscribed listeners. Negative or non-integer quantities are ignored.
        Must be called from inside the running event loop.
        """
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int) or new_quantity < 0:
            logger.debug(
                f"Ignoring quantity {new_quantity!r} for item {sanitize_id_for_logging(line_item_id)}"
            )
            return

        self._queues.setdefault(line_item_id, []).append(PendingUpdate(quantity=new_quantity))
        self._apply_optimistic(line_item_id, new_quantity)
        self._refresh_pending(line_item_id)

        if line_item_id not in self._drains:
            loop = asyncio.get_running_loop()
            self._drains[line_item_id] = loop.create_task(
                self._drain(line_item_id), name=f"cart-drain-{line_item_id}"
            )

    async def wait_idle(self) -> None:
        """Wait until every queue is drained."""
        while self._drains:
            await asyncio.gather(*list(self._drains.values()), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel running drains. Queued quantities are dropped."""
        tasks = list(self._drains.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._queues.clear()

    # ==================== DRAIN ====================

    async def _drain(self, line_item_id: str) -> None:
        """Send queued quantities for one line item until its queue stays empty."""
        try:
            while self._queues.get(line_item_id):
                batch = self._queues.pop(line_item_id)
                target = batch[-1].quantity

                self._in_flight.add(line_item_id)
                self._refresh_pending(line_item_id)
                try:
                    await self._send_update(line_item_id, target, coalesced=len(batch))
                finally:
                    self._in_flight.discard(line_item_id)
                    self._refresh_pending(line_item_id)
        finally:
            self._drains.pop(line_item_id, None)
            self._refresh_pending(line_item_id)

    async def _send_update(self, line_item_id: str, quantity: int, coalesced: int) -> None:
        safe_id = sanitize_id_for_logging(line_item_id)
        if coalesced > 1:
            logger.debug(f"Coalesced {coalesced} updates for item {safe_id} into quantity {quantity}")

        try:
            snapshot = await self._client.update_item_quantity(line_item_id, quantity)
        except CartServiceError as e:
            await self._handle_failure(line_item_id, e.message)
            return
        except Exception:
            logger.exception(f"Unexpected error updating cart item {safe_id}")
            await self._handle_failure(line_item_id, ERROR_CART_UPDATE_FAILED)
            return

        logger.info(f"Cart item {safe_id} updated to quantity {quantity}")
        self._replace_snapshot(snapshot)

    async def _handle_failure(self, line_item_id: str, message: str) -> None:
        """Notify once, drop unsent quantities and reload the cart from the service."""
        dropped = self._queues.pop(line_item_id, [])
        logger.warning(
            f"Cart update failed for item {sanitize_id_for_logging(line_item_id)}: {message}"
            f" (dropped {len(dropped)} queued updates)"
        )
        await self._notify_user(message or ERROR_CART_UPDATE_FAILED)

        try:
            snapshot = await self._client.fetch_cart()
        except CartServiceError as e:
            logger.error(f"Cart reconciliation fetch failed: {e}")
            return
        except Exception:
            logger.exception("Unexpected error in cart reconciliation fetch")
            return
        self._replace_snapshot(snapshot)

    # ==================== HELPERS ====================

    def _apply_optimistic(self, line_item_id: str, quantity: int) -> None:
        """Show the requested quantity until the service answers."""
        if self._snapshot.get_item(line_item_id) is None:
            return
        items = [
            item if item.id != line_item_id else replace(item, quantity=quantity)
            for item in self._snapshot.items
        ]
        self._set_snapshot(replace(self._snapshot, items=tuple(items), summary=CartSummary.from_items(items)))

    def _replace_snapshot(self, snapshot: CartSnapshot) -> None:
        self._set_snapshot(stable_snapshot(snapshot))

    def _set_snapshot(self, snapshot: CartSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Cart snapshot listener failed")

    def _refresh_pending(self, line_item_id: str) -> None:
        is_pending = bool(self._queues.get(line_item_id)) or line_item_id in self._in_flight
        was_pending = line_item_id in self._pending
        if is_pending == was_pending:
            return

        if is_pending:
            self._pending.add(line_item_id)
        else:
            self._pending.discard(line_item_id)

        pending = frozenset(self._pending)
        for listener in list(self._pending_listeners):
            try:
                listener(pending)
            except Exception:
                logger.exception("Cart pending listener failed")

    async def _notify_user(self, message: str) -> None:
        if self._notify is None:
            return
        try:
            result = self._notify(message)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Cart error notification failed")

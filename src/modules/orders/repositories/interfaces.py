"""Order repository interface.

Extends ``IRepository[Order]`` with the operations of the Order aggregate:
creation with items, compare-and-swap writes keyed on ``version`` (with an
optional stage-history append in the same transaction), item and image
metadata edits, and the completion update request.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import CompletionUpdateRequest, Order, OrderItem
    from modules.orders.state_machine import HistoryEntry


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate covers OrderItem children, the append-only
    OrderStageHistory and the CompletionUpdateRequest.  Every mutation bumps
    ``Order.version`` exactly once.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """Insert an order with its items atomically.  No history is written."""

    @abstractmethod
    def compare_and_swap(
        self,
        order_id: Any,
        expected_version: int,
        fields: Dict[str, Any],
        history: Optional[HistoryEntry] = None,
    ) -> int:
        """Write ``fields`` iff the stored version equals ``expected_version``.

        Returns the new version.  Raises ``ConcurrencyConflict`` on mismatch
        and ``OrderNotFound`` when the order no longer exists.
        """

    @abstractmethod
    def add_item(
        self, order_id: Any, expected_version: int, data: Dict[str, Any]
    ) -> OrderItem:
        """Append an item to the order."""

    @abstractmethod
    def update_item(
        self,
        order_id: Any,
        expected_version: int,
        item_id: Any,
        changes: Dict[str, Any],
    ) -> OrderItem:
        """Apply ``changes`` to one item."""

    @abstractmethod
    def delete_item(self, order_id: Any, expected_version: int, item_id: Any) -> None:
        """Remove one item."""

    @abstractmethod
    def append_item_images(
        self,
        order_id: Any,
        item_id: Any,
        field: str,
        images: List[Dict[str, str]],
    ) -> OrderItem:
        """Append image metadata, retrying a bounded number of conflicts."""

    @abstractmethod
    def remove_item_image(
        self,
        order_id: Any,
        expected_version: int,
        item_id: Any,
        field: str,
        key: str,
    ) -> OrderItem:
        """Drop the image whose storage key is ``key``."""

    @abstractmethod
    def get_update_request(self, order_id: Any) -> Optional[CompletionUpdateRequest]:
        """The order's update request (pending or archived), if any."""

    @abstractmethod
    def replace_update_request(
        self, order_id: Any, data: Dict[str, Any]
    ) -> CompletionUpdateRequest:
        """Store a fresh request, discarding an archived one."""

    @abstractmethod
    def resolve_update_request(
        self, order_id: Any, data: Dict[str, Any]
    ) -> CompletionUpdateRequest:
        """Record an admin decision on the pending request."""

    @abstractmethod
    def delete_update_request(self, order_id: Any) -> None:
        """Remove the stored request (no-op when none)."""

    @abstractmethod
    def stage_counts(self, baker_id: Optional[str] = None) -> Dict[str, int]:
        """Number of orders per stage, optionally for one baker."""

    @abstractmethod
    def pending_update_request_count(self, baker_id: Optional[str] = None) -> int:
        """Number of orders with a pending update request."""

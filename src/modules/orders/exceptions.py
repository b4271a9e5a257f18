"""Order domain exceptions.

Raised by the state machine, the completion workflow and the Service Layer
when business rules are violated.  The API layer (Views) catches these and
translates them into HTTP responses; ``code`` and ``extra`` end up in the
response body.
"""

from __future__ import annotations

from typing import Any, Iterable


class OrderDomainError(Exception):
    """Base class for every rule violation detected before a mutation."""

    code = "order_error"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extra}


class OrderNotFound(OrderDomainError):
    """The requested order does not exist or was deleted concurrently."""

    code = "not_found"


class ItemNotFound(OrderDomainError):
    code = "item_not_found"


class AccessDenied(OrderDomainError):
    """Role or ownership mismatch.  Never reveals whether a foreign order exists."""

    code = "access_denied"

    def __init__(self, message: str = "Access denied to this order.", **extra: Any):
        super().__init__(message, **extra)


class InvalidTransition(OrderDomainError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str, allowed: Iterable[str]) -> None:
        allowed_list = sorted(allowed)
        super().__init__(
            f"Cannot transition from {current} to {target}.",
            current_stage=current,
            requested_stage=target,
            allowed_stages=allowed_list,
        )
        self.allowed = allowed_list


class MissingPrice(OrderDomainError):
    code = "missing_price"

    def __init__(self) -> None:
        super().__init__("A price greater than zero is required for approval.")


class IncompleteSubmission(OrderDomainError):
    code = "incomplete_submission"

    def __init__(self, offending_items: int, message: str | None = None) -> None:
        super().__init__(
            message
            or f"{offending_items} item(s) need at least one inspiration image.",
            offending_items=offending_items,
        )
        self.offending_items = offending_items


class OrderNotEditable(OrderDomainError):
    """The order is outside the stages in which the actor may edit it."""

    code = "order_not_editable"


class InvalidAddressFormat(OrderDomainError):
    code = "invalid_address"


class PickupInPast(OrderDomainError):
    code = "pickup_in_past"


class CompletionNotAvailable(OrderDomainError):
    """Completion details can only be set once the order is Completed."""

    code = "completion_not_available"


class IncompleteCompletionDetails(OrderDomainError):
    code = "incomplete_completion_details"


class RequiresApprovalToEdit(OrderDomainError):
    code = "requires_approval_to_edit"

    def __init__(self) -> None:
        super().__init__(
            "Details are confirmed. Request an update and wait for approval "
            "before editing."
        )


class CompletionAlreadyConfirmed(OrderDomainError):
    code = "completion_already_confirmed"


class UpdateRequestNotAllowed(OrderDomainError):
    code = "update_request_not_allowed"


class UpdateRequestAlreadyPending(OrderDomainError):
    code = "update_request_pending"

    def __init__(self) -> None:
        super().__init__("An update request is already pending for this order.")


class NoPendingUpdateRequest(OrderDomainError):
    code = "no_pending_update_request"

    def __init__(self) -> None:
        super().__init__("There is no pending update request for this order.")


class ConcurrencyConflict(OrderDomainError):
    """Optimistic version check failed; the caller must re-fetch and retry."""

    code = "conflict"

    def __init__(self, order_id: Any, expected_version: int) -> None:
        super().__init__(
            "The order was modified by another request. Reload and try again.",
            expected_version=expected_version,
            retryable=True,
        )
        self.order_id = order_id
        self.expected_version = expected_version

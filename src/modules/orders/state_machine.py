"""Order stage state machine.

Three pieces, all free of ORM access so they can be exercised in isolation:

``TransitionTable``
    Immutable, role-scoped directed graph over stage names.  Built once from
    the static edge lists in ``modules.orders.constants`` and injected into
    the validator; tests may inject an alternate graph.

``StageTransitionValidator``
    Decides allow/deny for ``(order, actor, target stage, payload)`` and
    enforces the stage-specific invariants.  Never mutates anything.

``plan_stage_change``
    The executor half: turns an accepted transition into a ``StageMutation``
    (fields to write + the single history entry) that the repository applies
    atomically with a compare-and-swap on ``version``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping, Optional

import structlog

from modules.accounts.actor import Actor
from modules.accounts.constants import Role
from modules.orders.constants import ADMIN_TRANSITIONS, BAKER_TRANSITIONS, Stage
from modules.orders.exceptions import (
    AccessDenied,
    IncompleteSubmission,
    InvalidTransition,
    MissingPrice,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Transition Table
# ---------------------------------------------------------------------------


def _freeze(edges: Mapping[str, Any]) -> Mapping[str, frozenset[str]]:
    return MappingProxyType(
        {
            str(stage): frozenset(str(t) for t in targets)
            for stage, targets in edges.items()
        }
    )


@dataclass(frozen=True)
class TransitionTable:
    """Per-role mapping of current stage -> stages reachable in one step."""

    admin: Mapping[str, frozenset[str]]
    baker: Mapping[str, frozenset[str]]

    @classmethod
    def from_edges(
        cls, admin: Mapping[str, Any], baker: Mapping[str, Any]
    ) -> TransitionTable:
        return cls(admin=_freeze(admin), baker=_freeze(baker))

    def allowed_targets(self, role: str, stage: str) -> frozenset[str]:
        if role == Role.ADMIN:
            edges = self.admin
        elif role == Role.BAKER:
            edges = self.baker
        else:
            return frozenset()
        return edges.get(stage, frozenset())

    def is_allowed(self, role: str, current: str, target: str) -> bool:
        return target in self.allowed_targets(role, current)


DEFAULT_TRANSITION_TABLE = TransitionTable.from_edges(
    ADMIN_TRANSITIONS, BAKER_TRANSITIONS
)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderState:
    """Read-only snapshot of the order fields the validator needs."""

    stage: str
    baker_id: str
    price: Optional[Decimal] = None
    inspiration_counts: tuple[int, ...] = ()
    version: int = 0


@dataclass(frozen=True)
class ValidatedTransition:
    current_stage: str
    target_stage: str
    price: Optional[Decimal] = None


class StageTransitionValidator:
    """Role-gated stage transition check.

    Check order matters: ownership first (a baker never learns anything
    about a foreign order), then graph membership, then data invariants.
    """

    def __init__(self, table: TransitionTable = DEFAULT_TRANSITION_TABLE) -> None:
        self._table = table

    @property
    def table(self) -> TransitionTable:
        return self._table

    def validate(
        self,
        order: OrderState,
        actor: Actor,
        target_stage: str,
        price: Optional[Decimal] = None,
    ) -> ValidatedTransition:
        """Return the payload subset to apply, or raise.

        Raises:
            AccessDenied: baker acting on another baker's order.
            InvalidTransition: no edge ``order.stage -> target_stage`` for
                the actor's role.
            MissingPrice: entering Requires Approval without a positive price.
            IncompleteSubmission: baker submitting a draft whose items lack
                inspiration images.
        """
        if actor.is_baker and order.baker_id != actor.baker_id:
            raise AccessDenied()

        allowed = self._table.allowed_targets(actor.role, order.stage)
        if target_stage not in allowed:
            logger.info(
                "order.transition_rejected",
                role=actor.role,
                current_stage=order.stage,
                target_stage=target_stage,
            )
            raise InvalidTransition(order.stage, target_stage, allowed)

        if target_stage == Stage.REQUIRES_APPROVAL:
            effective = price if price is not None else order.price
            if effective is None or effective <= 0:
                raise MissingPrice()

        if (
            actor.is_baker
            and order.stage == Stage.DRAFT
            and target_stage == Stage.SUBMITTED
        ):
            if not order.inspiration_counts:
                raise IncompleteSubmission(
                    0, "Add at least one item before submitting."
                )
            offending = sum(1 for count in order.inspiration_counts if count < 1)
            if offending:
                raise IncompleteSubmission(offending)

        return ValidatedTransition(
            current_stage=order.stage,
            target_stage=target_stage,
            price=price,
        )


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HistoryEntry:
    stage: str
    changed_by: str
    changed_at: datetime
    comments: str = ""


@dataclass(frozen=True)
class StageMutation:
    """Everything a stage change writes, applied in one atomic call."""

    previous_stage: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    history: Optional[HistoryEntry] = None

    @property
    def changed(self) -> bool:
        return self.history is not None


def plan_stage_change(
    order: OrderState,
    target_stage: str,
    actor: Actor,
    comments: str,
    now: datetime,
    price: Optional[Decimal] = None,
) -> StageMutation:
    """Build the mutation for ``order -> target_stage``.

    The price is only written when entering Requires Approval.  A same-stage
    request produces no history entry (and no side effects downstream).
    """
    fields: dict[str, Any] = {"stage": target_stage}
    if price is not None and target_stage == Stage.REQUIRES_APPROVAL:
        fields["price"] = price

    history = None
    if target_stage != order.stage:
        history = HistoryEntry(
            stage=target_stage,
            changed_by=actor.id,
            changed_at=now,
            comments=comments or "",
        )
    return StageMutation(previous_stage=order.stage, fields=fields, history=history)

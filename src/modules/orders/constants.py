"""Order domain constants.

Defines the stage choices, item/completion enumerations and the static,
role-scoped edge lists of the stage state machine.  The edge lists are the
raw configuration; ``modules.orders.state_machine.TransitionTable`` freezes
them into the value the validator consults.
"""

from django.db import models


class Stage(models.TextChoices):
    DRAFT = "Draft", "Draft"
    SUBMITTED = "Submitted", "Submitted"
    UNDER_REVIEW = "Under Review", "Under Review"
    REQUIRES_APPROVAL = "Requires Approval", "Requires Approval"
    REQUESTED_CHANGES = "Requested Changes", "Requested Changes"
    READY_TO_PRINT = "Ready to Print", "Ready to Print"
    PRINTING = "Printing", "Printing"
    COMPLETED = "Completed", "Completed"


class ItemType(models.TextChoices):
    CUTTER = "Cutter", "Cutter"
    STAMP = "Stamp", "Stamp"
    STAMP_AND_CUTTER = "Stamp & Cutter", "Stamp & Cutter"


class MeasurementUnit(models.TextChoices):
    CM = "cm", "cm"
    MM = "mm", "mm"


class DeliveryMethod(models.TextChoices):
    PICKUP = "Pickup", "Pickup"
    DELIVERY = "Delivery", "Delivery"


class PaymentMethod(models.TextChoices):
    CASH = "Cash", "Cash"
    CARD = "Card", "Card"


class UpdateRequestStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class ImageKind(models.TextChoices):
    INSPIRATION = "inspiration", "Inspiration"
    PREVIEW = "preview", "Preview"


ADMIN_TRANSITIONS: dict[str, tuple[str, ...]] = {
    Stage.DRAFT: (Stage.SUBMITTED, Stage.UNDER_REVIEW),
    Stage.SUBMITTED: (Stage.UNDER_REVIEW, Stage.DRAFT),
    Stage.UNDER_REVIEW: (
        Stage.REQUIRES_APPROVAL,
        Stage.REQUESTED_CHANGES,
        Stage.SUBMITTED,
    ),
    Stage.REQUIRES_APPROVAL: (
        Stage.REQUESTED_CHANGES,
        Stage.READY_TO_PRINT,
        Stage.UNDER_REVIEW,
    ),
    Stage.REQUESTED_CHANGES: (Stage.UNDER_REVIEW, Stage.REQUIRES_APPROVAL),
    Stage.READY_TO_PRINT: (Stage.PRINTING, Stage.REQUIRES_APPROVAL),
    Stage.PRINTING: (Stage.COMPLETED, Stage.READY_TO_PRINT),
    Stage.COMPLETED: (Stage.PRINTING,),
}

BAKER_TRANSITIONS: dict[str, tuple[str, ...]] = {
    Stage.DRAFT: (Stage.SUBMITTED,),
    Stage.SUBMITTED: (),
    Stage.UNDER_REVIEW: (),
    Stage.REQUIRES_APPROVAL: (Stage.READY_TO_PRINT,),
    Stage.REQUESTED_CHANGES: (Stage.SUBMITTED,),
    Stage.READY_TO_PRINT: (),
    Stage.PRINTING: (),
    Stage.COMPLETED: (),
}

# Stages in which a baker may edit, add items to, or delete their order.
BAKER_EDITABLE_STAGES: frozenset[str] = frozenset(
    {Stage.DRAFT, Stage.REQUESTED_CHANGES}
)

# Terminal production stage; gates the completion sub-workflow.
COMPLETION_STAGE = Stage.COMPLETED

# Stages from Requires Approval onwards carry a positive price.
PRICED_STAGES: frozenset[str] = frozenset(
    {Stage.REQUIRES_APPROVAL, Stage.READY_TO_PRINT, Stage.PRINTING, Stage.COMPLETED}
)

ORDER_NUMBER_DIGITS = 3
ORDER_NUMBER_MAX_RETRIES = 5
IMAGE_APPEND_MAX_RETRIES = 3

MEASUREMENT_MIN = "0.1"
MEASUREMENT_MAX = "1000"
ITEM_COMMENTS_MAX_LENGTH = 1000
PICKUP_NOTES_MAX_LENGTH = 500
ADDRESS_STREET_MAX_LENGTH = 200
ADDRESS_SUBURB_MAX_LENGTH = 100
ADDRESS_STATE_MAX_LENGTH = 100
ADDRESS_POSTCODE_MAX_LENGTH = 20
ADDRESS_COUNTRY_MAX_LENGTH = 100
ADDRESS_INSTRUCTIONS_MAX_LENGTH = 500

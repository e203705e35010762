from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class EditFailure:
    """
    Typed failure value returned by edit operations.

    Operations never raise for user-level failures; callers check
    `isinstance(result, EditFailure)` and surface `message` to the user.
    """

    message: str


@dataclass(frozen=True)
class ValidationError(EditFailure):
    """Rejected before mutation: value would break an element invariant."""

    field: str = ""


@dataclass(frozen=True)
class NotFound(EditFailure):
    element_id: str = ""
    track_id: str = ""


@dataclass(frozen=True)
class NotApplicable(EditFailure):
    """Operation does not apply to this element kind or media type."""

    pass


@dataclass(frozen=True)
class AsyncOperationFailed(EditFailure):
    """Import/decode/extract I/O failed; target left untouched."""

    pass


@dataclass(frozen=True)
class StaleTargetError(EditFailure):
    """Async operation finished after its target element disappeared."""

    element_id: str = ""


SPLIT_OUTSIDE = "outside"
SPLIT_NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SplitFailed(EditFailure):
    # "outside": split point not strictly inside the element
    # "not_found": element missing from the track
    reason: str = SPLIT_OUTSIDE


ReplaceError = Union[NotApplicable, NotFound, AsyncOperationFailed, StaleTargetError, ValidationError]
ExtractError = Union[NotApplicable, NotFound, AsyncOperationFailed, StaleTargetError, ValidationError]


class InteractionBusy(RuntimeError):
    """Raised when a resize/drag starts while another interaction is active."""

    pass


def is_failure(value: object) -> bool:
    return isinstance(value, EditFailure)

"""Error types surfaced by the action dispatch core.

Every error is recoverable: the dispatcher reports it to the caller and leaves
its registry untouched. Exceptions raised by handlers or can-execute
predicates are *not* wrapped; they propagate unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:  # pragma: no cover
    from .identity import ViewAction

__all__ = [
    "ErrorCode",
    "ViewActionError",
    "UnknownActionError",
    "PayloadTypeError",
]


class ErrorCode:
    """Machine-readable codes attached to :class:`ViewActionError` instances."""

    UNKNOWN_ACTION = "unknown_action"
    PAYLOAD_TYPE_MISMATCH = "payload_type_mismatch"


@dataclass
class ViewActionError(Exception):
    """Base class for dispatch errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable description.
        details: Additional structured information.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


@dataclass
class UnknownActionError(ViewActionError, LookupError):
    """No handler is registered for the dispatched action."""

    error_code: str = field(default=ErrorCode.UNKNOWN_ACTION)
    message: str = field(default="No handler registered for action")
    details: dict[str, Any] = field(default_factory=dict)

    action: ViewAction | None = field(default=None)

    severity: ClassVar[str] = "warning"

    @classmethod
    def for_action(cls, action: ViewAction) -> UnknownActionError:
        return cls(
            message=f"No handler registered for action '{action}'",
            details={"action": str(action)},
            action=action,
        )


@dataclass
class PayloadTypeError(ViewActionError, TypeError):
    """A parameterized handler was dispatched with a payload of the wrong type."""

    error_code: str = field(default=ErrorCode.PAYLOAD_TYPE_MISMATCH)
    message: str = field(default="Payload type does not match the registered handler")
    details: dict[str, Any] = field(default_factory=dict)

    action: ViewAction | None = field(default=None)
    expected: type | None = field(default=None)
    received: type | None = field(default=None)

    @classmethod
    def for_payload(cls, action: ViewAction, expected: type, payload: Any) -> PayloadTypeError:
        received = type(payload)
        return cls(
            message=(
                f"Action '{action}' expects a {expected.__name__} payload, "
                f"got {received.__name__}"
            ),
            details={
                "action": str(action),
                "expected": expected.__name__,
                "received": received.__name__,
            },
            action=action,
            expected=expected,
            received=received,
        )

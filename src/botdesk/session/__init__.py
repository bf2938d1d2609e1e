"""Session layer: the chat-view controller and the state it publishes."""

from .controller import SessionController
from .guards import GuardState, InFlightGuard
from .models import ControllerPhase, ControllerSnapshot, ViewMessage
from .optimistic import ActionResult, OptimisticList, Outcome, Pending, SendResult

__all__ = [
    "SessionController",
    "GuardState",
    "InFlightGuard",
    "ControllerPhase",
    "ControllerSnapshot",
    "ViewMessage",
    "ActionResult",
    "OptimisticList",
    "Outcome",
    "Pending",
    "SendResult",
]

"""
Manufacture order state machine.

An order's lifecycle state and its manual-action flag travel together as one
immutable ``OrderStatus`` value. The flag is orthogonal to the state: it can
be raised in any state and is only cleared by resolving the manual action.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet


class ManufactureOrderState(str, Enum):
    DRAFT = "Draft"
    PLANNED = "Planned"
    IN_PRODUCTION = "InProduction"
    SEMI_PRODUCT_MANUFACTURED = "SemiProductManufactured"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ManufactureType(str, Enum):
    SINGLE_PHASE = "SinglePhase"
    MULTI_PHASE = "MultiPhase"


S = ManufactureOrderState

ALLOWED_TRANSITIONS: Dict[ManufactureOrderState, FrozenSet[ManufactureOrderState]] = {
    S.DRAFT: frozenset({S.PLANNED, S.CANCELLED}),
    S.PLANNED: frozenset({S.DRAFT, S.IN_PRODUCTION, S.SEMI_PRODUCT_MANUFACTURED, S.CANCELLED}),
    S.IN_PRODUCTION: frozenset({S.COMPLETED, S.CANCELLED}),
    S.SEMI_PRODUCT_MANUFACTURED: frozenset({S.PLANNED, S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset({S.SEMI_PRODUCT_MANUFACTURED, S.CANCELLED}),
    S.CANCELLED: frozenset(),
}


class InvalidStateTransitionError(ValueError):
    def __init__(self, old_state: ManufactureOrderState, new_state: ManufactureOrderState):
        super().__init__(f"Cannot change order state from {old_state.value} to {new_state.value}")
        self.old_state = old_state
        self.new_state = new_state


def parse_state(value) -> ManufactureOrderState:
    """Accept an enum member, its value ("Planned") or its name ("PLANNED")."""
    if isinstance(value, ManufactureOrderState):
        return value
    text = str(value).strip()
    for state in ManufactureOrderState:
        if text == state.value or text.upper() == state.name:
            return state
    raise ValueError(f"Unknown manufacture order state: {value!r}")


def parse_manufacture_type(value) -> ManufactureType:
    if isinstance(value, ManufactureType):
        return value
    text = str(value).strip()
    for kind in ManufactureType:
        if text == kind.value or text.upper() == kind.name:
            return kind
    raise ValueError(f"Unknown manufacture type: {value!r}")


@dataclass(frozen=True)
class OrderStatus:
    state: ManufactureOrderState
    manual_action_required: bool = False

    def can_transition_to(self, new_state: ManufactureOrderState) -> bool:
        return new_state in ALLOWED_TRANSITIONS[self.state]

    def transition_to(self, new_state: ManufactureOrderState) -> "OrderStatus":
        if not self.can_transition_to(new_state):
            raise InvalidStateTransitionError(self.state, new_state)
        return replace(self, state=new_state)

    def flag_manual_action(self) -> "OrderStatus":
        return replace(self, manual_action_required=True)

    def resolve_manual_action(self) -> "OrderStatus":
        return replace(self, manual_action_required=False)

"""
Order status state machines

One table per order kind lists the legal next statuses for every status.
The same table drives the action menu of the detail screens and the check
made before a status change is sent; the server still has the final word.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Mapping, TypeVar, Union

from shop_api.errors import ValidationError

S = TypeVar("S", bound=Enum)


class CustomOrderStatus(str, Enum):
    NEW = "new"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderStatus(str, Enum):
    NEW = "new"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# new -> confirmed goes through the confirm-and-price action, not a status change
CUSTOM_ORDER_TRANSITIONS: dict[CustomOrderStatus, frozenset[CustomOrderStatus]] = {
    CustomOrderStatus.NEW: frozenset({CustomOrderStatus.CANCELLED}),
    CustomOrderStatus.CONFIRMED: frozenset({CustomOrderStatus.IN_PROGRESS, CustomOrderStatus.CANCELLED}),
    CustomOrderStatus.IN_PROGRESS: frozenset({CustomOrderStatus.READY, CustomOrderStatus.CANCELLED}),
    CustomOrderStatus.READY: frozenset({CustomOrderStatus.DELIVERED, CustomOrderStatus.CANCELLED}),
    CustomOrderStatus.DELIVERED: frozenset(),
    CustomOrderStatus.CANCELLED: frozenset(),
}

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

CUSTOM_ORDER_LABELS = {
    CustomOrderStatus.NEW: "Новый",
    CustomOrderStatus.CONFIRMED: "Подтверждён",
    CustomOrderStatus.IN_PROGRESS: "В работе",
    CustomOrderStatus.READY: "Готов",
    CustomOrderStatus.DELIVERED: "Выдан",
    CustomOrderStatus.CANCELLED: "Отменён",
}

ORDER_LABELS = {
    OrderStatus.NEW: "Новый",
    OrderStatus.CONFIRMED: "Подтверждён",
    OrderStatus.PROCESSING: "В обработке",
    OrderStatus.SHIPPED: "Отправлен",
    OrderStatus.DELIVERED: "Доставлен",
    OrderStatus.CANCELLED: "Отменён",
}

# Button captions for moving into a status
CUSTOM_ORDER_ACTIONS = {
    CustomOrderStatus.IN_PROGRESS: "Взять в работу",
    CustomOrderStatus.READY: "Готов к выдаче",
    CustomOrderStatus.DELIVERED: "Выдан",
    CustomOrderStatus.CANCELLED: "Отменить",
}

ORDER_ACTIONS = {
    OrderStatus.CONFIRMED: "Подтвердить",
    OrderStatus.PROCESSING: "В обработку",
    OrderStatus.SHIPPED: "Отправить",
    OrderStatus.DELIVERED: "Доставлен",
    OrderStatus.CANCELLED: "Отменить",
}


@dataclass
class TransitionAction:
    """One button of a detail screen's action menu"""
    target: str
    label: str
    danger: bool = False

    def to_dict(self) -> dict:
        return {"target": self.target, "label": self.label, "danger": self.danger}


class StateMachine(Generic[S]):
    """Legal status moves for one kind of order"""

    def __init__(
        self,
        status_type: type[S],
        transitions: Mapping[S, frozenset[S]],
        labels: Mapping[S, str],
        actions: Mapping[S, str],
        terminal_failure: S,
    ):
        missing = set(status_type) - set(transitions)
        if missing:
            raise ValueError(f"No transitions defined for {sorted(s.value for s in missing)}")
        self.status_type = status_type
        self.transitions = transitions
        self.labels = labels
        self.action_labels = actions
        self.terminal_failure = terminal_failure

    def parse(self, status: Union[S, str]) -> S:
        try:
            return self.status_type(status)
        except ValueError:
            raise ValidationError(f"Неизвестный статус: {status}", {"status": "Неизвестный статус"})

    def allowed(self, status: Union[S, str]) -> frozenset[S]:
        return self.transitions[self.parse(status)]

    def can_transition(self, current: Union[S, str], target: Union[S, str]) -> bool:
        try:
            return self.parse(target) in self.allowed(current)
        except ValidationError:
            return False

    def ensure_transition(self, current: Union[S, str], target: Union[S, str]) -> S:
        """Return the parsed target, or raise when the move is not legal"""
        target_status = self.parse(target)
        if target_status not in self.allowed(current):
            current_label = self.label(current)
            raise ValidationError(
                f"Недопустимый переход: {current_label} → {self.labels[target_status]}",
                {"status": "Недопустимый переход статуса"},
            )
        return target_status

    def is_terminal(self, status: Union[S, str]) -> bool:
        return not self.allowed(status)

    def label(self, status: Union[S, str]) -> str:
        return self.labels[self.parse(status)]

    def actions(self, status: Union[S, str]) -> list[TransitionAction]:
        """Action menu for a status, in declaration order of the statuses"""
        allowed = self.allowed(status)
        return [
            TransitionAction(
                target=target.value,
                label=self.action_labels[target],
                danger=target == self.terminal_failure,
            )
            for target in self.status_type
            if target in allowed
        ]


CUSTOM_ORDER_MACHINE: StateMachine[CustomOrderStatus] = StateMachine(
    CustomOrderStatus,
    CUSTOM_ORDER_TRANSITIONS,
    CUSTOM_ORDER_LABELS,
    CUSTOM_ORDER_ACTIONS,
    terminal_failure=CustomOrderStatus.CANCELLED,
)

ORDER_MACHINE: StateMachine[OrderStatus] = StateMachine(
    OrderStatus,
    ORDER_TRANSITIONS,
    ORDER_LABELS,
    ORDER_ACTIONS,
    terminal_failure=OrderStatus.CANCELLED,
)

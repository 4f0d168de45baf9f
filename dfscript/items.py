import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple

from .errors import SlotOverflowError
from .values import Value, Variable, render_value

# A code chest has 27 slots
MAX_SLOT = 26

# Slot 0 holds the variable (or selection subject) on prefixed forms
PREFIXED_FIRST_SLOT = 1

Renderer = Callable[[Value], Tuple[str, Dict[str, Any]]]


@dataclass(frozen=True)
class Item:
    tag: str
    slot: int
    value: Value
    data: Dict[str, Any]

    def to_json(self) -> Dict[str, Any]:
        return {"item": {"id": self.tag, "data": copy.deepcopy(self.data)}, "slot": self.slot}


def make_item(value: Value, slot: int, renderer: Renderer = render_value) -> Item:
    if slot < 0 or slot > MAX_SLOT:
        raise SlotOverflowError(f"Item slot {slot} is outside the chest (0-{MAX_SLOT})")
    tag, data = renderer(value)
    return Item(tag=tag, slot=slot, value=value, data=data)


def encode_items(values: Sequence[Value], first_slot: int = 0, renderer: Renderer = render_value) -> List[Item]:
    """Number arguments in source order starting at ``first_slot``."""
    return [make_item(value, first_slot + i, renderer) for i, value in enumerate(values)]


def variable_item(variable: Variable, renderer: Renderer = render_value) -> Item:
    # Always tagged "var", whatever the renderer says about the value
    _, data = renderer(variable)
    return Item(tag="var", slot=0, value=variable, data=data)


def encode_prefixed(variable: Variable, values: Sequence[Value], renderer: Renderer = render_value) -> List[Item]:
    """Slot 0 is the variable, the arguments follow at 1..n+1."""
    return [variable_item(variable, renderer)] + encode_items(values, PREFIXED_FIRST_SLOT, renderer)

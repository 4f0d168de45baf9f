"""
Argument values: the literals and variable references that can appear inside
an argument list, and their rendering to the engine's item catalog.

Every value renders through ``render_value`` to a ``(tag, payload)`` pair.
The compiler core only ever sees that pair, so supporting a new item type
means adding a value class here and nothing else.
"""
from dataclasses import dataclass
from typing import Any, Dict, Tuple

# source prefix -> engine scope name
VARIABLE_SCOPES = {
    "local": "local",
    "game": "unsaved",
    "save": "saved",
}
DEFAULT_SCOPE = "unsaved"


class Value:
    TAG = ""

    def payload(self) -> Dict[str, Any]:
        raise NotImplementedError(f"{type(self).__name__} cannot be rendered")


@dataclass(frozen=True, slots=True)
class Text(Value):
    text: str
    TAG = "txt"

    def payload(self):
        return {"name": self.text}


@dataclass(frozen=True, slots=True)
class Number(Value):
    # Kept as written so "1.50" is not rewritten to "1.5"
    text: str
    TAG = "num"

    def payload(self):
        return {"name": self.text}


@dataclass(frozen=True, slots=True)
class Variable(Value):
    name: str
    scope: str = DEFAULT_SCOPE
    TAG = "var"

    def payload(self):
        return {"name": self.name, "scope": self.scope}


@dataclass(frozen=True, slots=True)
class Location(Value):
    x: float
    y: float
    z: float
    pitch: float = 0.0
    yaw: float = 0.0
    TAG = "loc"

    def payload(self):
        return {
            "isBlock": False,
            "loc": {"x": self.x, "y": self.y, "z": self.z, "pitch": self.pitch, "yaw": self.yaw},
        }


@dataclass(frozen=True, slots=True)
class Vector(Value):
    x: float
    y: float
    z: float
    TAG = "vec"

    def payload(self):
        return {"x": self.x, "y": self.y, "z": self.z}


def render_value(value: Value) -> Tuple[str, Dict[str, Any]]:
    """Render a value to its (category tag, payload) pair."""
    return value.TAG, value.payload()


def variable_scope(prefix: str) -> str:
    return VARIABLE_SCOPES[prefix]

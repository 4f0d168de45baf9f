"""
Block model for code templates.

A compiled unit is a flat list of blocks. Nesting only exists through
``ScopeMarker`` blocks (the engine's "brackets"), so every block renders to
a standalone dict and a unit renders to ``{"blocks": [...]}``.
"""
import copy
import json
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import settings
from .items import Item


def _load_process_items(path=None) -> List[Dict[str, Any]]:
    if path is None:
        path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static", "start_process_items.json")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


_process_items = {}


def process_items(path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Default tags carried by a start_process block, read once per path."""
    if path not in _process_items:
        _process_items[path] = _load_process_items(path)
    return _process_items[path]


class BracketDirection(Enum):
    OPEN = "open"
    CLOSE = "close"


class BracketType(Enum):
    NORM = "norm"
    REPEAT = "repeat"


class Block:
    def to_json(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Instruction(Block):
    """A single code action, condition or selection step.

    ``kind`` is the engine block code (``player_action``, ``if_var`` ...),
    ``items`` are the arguments placed in the chest above the block.
    """
    kind: str
    items: Tuple[Item, ...] = ()
    action: str = ""
    data: str = ""
    target: str = ""
    inverted: str = ""
    sub_action: str = ""

    def to_json(self):
        return {
            "id": "block",
            "block": self.kind,
            "args": {"items": [item.to_json() for item in self.items]},
            "action": self.action,
            "target": self.target,
            "inverted": self.inverted,
            "data": self.data,
            "subAction": self.sub_action,
        }


@dataclass(frozen=True)
class EventDefinition(Block):
    action: str
    kind: str = "event"

    def to_json(self):
        return {"id": "block", "block": self.kind, "action": self.action, "args": {"items": []}}


@dataclass(frozen=True)
class FunctionDefinition(Block):
    name: str
    kind: str = "func"

    def to_json(self):
        return {"id": "block", "block": self.kind, "args": {"items": []}, "data": self.name}


@dataclass(frozen=True)
class ProcessDefinition(Block):
    name: str
    kind: str = "process"

    def to_json(self):
        return {"id": "block", "block": self.kind, "args": {"items": []}, "data": self.name}


@dataclass(frozen=True)
class FunctionCall(Block):
    name: str
    kind: str = "call_func"

    def to_json(self):
        return {"id": "block", "block": self.kind, "data": self.name}


@dataclass(frozen=True)
class ProcessCall(Block):
    name: str
    kind: str = "start_process"
    # None means the packaged default payload
    template_path: Optional[str] = None

    def to_json(self):
        return {
            "id": "block",
            "block": self.kind,
            "data": self.name,
            "args": {"items": copy.deepcopy(process_items(self.template_path))},
        }


@dataclass(frozen=True)
class ScopeMarker(Block):
    direction: BracketDirection
    shape: BracketType = BracketType.NORM

    def to_json(self):
        return {"id": "bracket", "direct": self.direction.value, "type": self.shape.value}


def template(blocks: Sequence[Block]) -> Dict[str, Any]:
    return {"blocks": [block.to_json() for block in blocks]}


def dumps(obj: Any, compact: bool = None) -> str:
    if compact is None:
        compact = settings.COMPACT_JSON
    if compact:
        return json.dumps(obj, separators=(",", ":"))
    return json.dumps(obj, indent=2)

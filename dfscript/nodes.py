"""Syntax tree produced by the parser and consumed by the lowering pass."""
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .values import Value, Variable


@dataclass(slots=True)
class ActionCall:
    namespace: str
    name: str
    args: List[Value]


@dataclass(slots=True)
class Assignment:
    variable: Variable
    op: str
    verb: str
    args: List[Value]


@dataclass(slots=True)
class Conditional:
    namespace: str
    name: str
    args: List[Value]
    body: List["Statement"]
    negated: bool = False


@dataclass(slots=True)
class VarConditional:
    variable: Variable
    op: str
    name: str
    args: List[Value]
    body: List["Statement"]


@dataclass(slots=True)
class Else:
    body: List["Statement"]


@dataclass(slots=True)
class SelectStep:
    action: str
    sub_action: str
    args: List[Value]


@dataclass(slots=True)
class Selection:
    steps: List[SelectStep]
    body: List["Statement"]


@dataclass(slots=True)
class Call:
    name: str
    process: bool = False


Statement = Union[ActionCall, Assignment, Conditional, VarConditional, Else, Selection, Call]


@dataclass(slots=True)
class Unit:
    # "event", "func" or "proc"
    kind: str
    name: str
    body: List[Statement]
    # (line, column) of the unit name
    position: Optional[Tuple[int, int]] = None

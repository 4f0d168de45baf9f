"""
Lowering: syntax tree -> flat block list.

The engine has no nested code; a nested region is written as an opening
bracket, the region's blocks, and a closing bracket. ``ScopeWriter`` is the
only place that knows this. Selections do not use brackets at all: their
steps change the current selection, so the body is followed by an explicit
reset instead.
"""
import logging
from typing import List, Sequence

from .blocks import (
    Block,
    BracketDirection,
    BracketType,
    EventDefinition,
    FunctionCall,
    FunctionDefinition,
    Instruction,
    ProcessCall,
    ProcessDefinition,
    ScopeMarker,
)
from .config import CompilerSettings, settings as default_settings
from .items import PREFIXED_FIRST_SLOT, Renderer, encode_items, encode_prefixed
from .nodes import (
    ActionCall,
    Assignment,
    Call,
    Conditional,
    Else,
    Selection,
    Unit,
    VarConditional,
)
from .values import render_value

logger = logging.getLogger("dfscript.lowering")

ACTION_KINDS = {
    "player": "player_action",
    "entity": "entity_action",
    "plot": "game_action",
}

CONDITION_KINDS = {
    "player": "if_player",
    "entity": "if_entity",
    "plot": "if_game",
}

# "var x = with(5)" uses the operator itself as the action
PLACEHOLDER_VERB = "with"
# "a::nil()" selects with no sub action
PLACEHOLDER_SELECTOR = "nil"
NEGATED = "NOT"


def first_upper(s: str) -> str:
    return s[:1].upper() + s[1:]


class ScopeWriter:
    """Writes a nested region as head, open bracket, body, close bracket."""

    def __init__(self, shape: BracketType = BracketType.NORM):
        self.shape = shape

    def open(self) -> ScopeMarker:
        return ScopeMarker(BracketDirection.OPEN, self.shape)

    def close(self) -> ScopeMarker:
        return ScopeMarker(BracketDirection.CLOSE, self.shape)

    def wrap(self, head: Block, body: Sequence[Block]) -> List[Block]:
        return [head, self.open(), *body, self.close()]


class Lowerer:
    def __init__(self, settings: CompilerSettings = None, renderer: Renderer = render_value):
        self.settings = settings or default_settings
        self.renderer = renderer
        self.scope = ScopeWriter()

    @property
    def default_target(self) -> str:
        return self.settings.DEFAULT_TARGET

    def lower_unit(self, unit: Unit) -> List[Block]:
        if unit.kind == "event":
            head = EventDefinition(action=first_upper(unit.name))
        elif unit.kind == "func":
            head = FunctionDefinition(name=unit.name)
        elif unit.kind == "proc":
            head = ProcessDefinition(name=unit.name)
        else:
            raise ValueError(f"Unknown unit kind: {unit.kind}")

        blocks = [head] + self.lower_body(unit.body)
        logger.debug(f"Lowered {unit.kind} {unit.name}: {len(blocks)} blocks")
        return blocks

    def lower_body(self, statements) -> List[Block]:
        out = []
        for statement in statements:
            out.extend(self.visit(statement))
        return out

    def visit(self, node) -> List[Block]:
        handler = getattr(self, f"visit_{type(node).__name__.lower()}", None)
        if handler is None:
            raise ValueError(f"Unknown statement type: {type(node).__name__}")
        return handler(node)

    # --- Statements ---

    def visit_actioncall(self, node: ActionCall) -> List[Block]:
        return [Instruction(
            kind=ACTION_KINDS[node.namespace],
            items=tuple(encode_items(node.args, renderer=self.renderer)),
            action=first_upper(node.name),
            target=self.default_target,
        )]

    def visit_assignment(self, node: Assignment) -> List[Block]:
        verb = node.op if node.verb == PLACEHOLDER_VERB else node.verb
        return [Instruction(
            kind="set_var",
            items=tuple(encode_prefixed(node.variable, node.args, self.renderer)),
            action=first_upper(verb),
        )]

    def visit_conditional(self, node: Conditional) -> List[Block]:
        head = Instruction(
            kind=CONDITION_KINDS[node.namespace],
            items=tuple(encode_items(node.args, renderer=self.renderer)),
            action=first_upper(node.name),
            target=self.default_target,
            inverted=NEGATED if node.negated else "",
        )
        return self.scope.wrap(head, self.lower_body(node.body))

    def visit_varconditional(self, node: VarConditional) -> List[Block]:
        # The name is used as written, "with" included: only assignments
        # fall back to the operator.
        head = Instruction(
            kind="if_var",
            items=tuple(encode_prefixed(node.variable, node.args, self.renderer)),
            action=first_upper(node.name),
        )
        return self.scope.wrap(head, self.lower_body(node.body))

    def visit_else(self, node: Else) -> List[Block]:
        head = Instruction(kind="else", target=self.default_target)
        return self.scope.wrap(head, self.lower_body(node.body))

    def visit_selection(self, node: Selection) -> List[Block]:
        out = []
        for step in node.steps:
            sub_action = "" if step.sub_action == PLACEHOLDER_SELECTOR else step.sub_action
            out.append(Instruction(
                kind="select_obj",
                items=tuple(encode_items(step.args, PREFIXED_FIRST_SLOT, self.renderer)),
                action=first_upper(step.action),
                sub_action=first_upper(sub_action),
            ))
        out.extend(self.lower_body(node.body))
        out.append(Instruction(kind="select_obj", action="Reset"))
        return out

    def visit_call(self, node: Call) -> List[Block]:
        if node.process:
            return [ProcessCall(name=node.name, template_path=self.settings.PROCESS_TEMPLATE_PATH)]
        return [FunctionCall(name=node.name)]

import logging
import os
import re
from typing import Dict, List, Optional, Tuple

import lark
from lark import Transformer, exceptions
from lark.parsers.lalr_analysis import Shift

from .errors import DFSyntaxError
from .nodes import (
    ActionCall,
    Assignment,
    Call,
    Conditional,
    Else,
    SelectStep,
    Selection,
    Unit,
    VarConditional,
)
from .values import Location, Number, Text, Variable, Vector, variable_scope

logger = logging.getLogger("dfscript.parser")

GRAMMAR_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "grammar.lark")

_ESCAPE = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

# Labelled broken snippets; lark matches a failure against the parser state
# each of them fails in, which tells us what construct the user was writing.
ERROR_EXAMPLES = {
    "missing separator": [
        "event player.join { player.jump() player.jump() }",
        "event player.join { player.jump() plot.broadcast() }",
    ],
    "unclosed block": [
        "event player.join {",
        "func f() { player.jump()",
        "proc p() { if player.isSneaking { player.jump() }",
    ],
    "missing argument list": [
        "event player.join { player.jump }",
        "event player.join { plot.broadcast; }",
        "event player.join { var x = add }",
    ],
    "statement outside of a unit": [
        "player.jump()",
        "var x = add(1)",
        "if player.isSneaking { }",
    ],
    "negation is only allowed on player conditions": [
        "event player.join { if !entity.isNear { } }",
        "event player.join { if !plot.hasPlayer { } }",
        "event player.join { if !var x = eq(1) { } }",
    ],
    "missing operator": [
        "event player.join { var x add(1) }",
        "event player.join { if var x eq(1) { } }",
    ],
    "unterminated argument list": [
        "event player.join { player.jump(1 }",
        "event player.join { player.jump(1, }",
    ],
}

# Grammar rule -> name reported in syntax errors
RULE_LABELS = {
    "start": "program",
    "unit": "unit",
    "event_def": "event definition",
    "proc_def": "process definition",
    "func_def": "function definition",
    "body": "block",
    "statement": "statement",
    "action_call": "action call",
    "assignment": "assignment",
    "if_player": "player condition",
    "if_namespace": "condition",
    "if_var": "variable condition",
    "else_block": "else block",
    "selection": "selection",
    "select_step": "selection step",
    "func_call": "function call",
    "proc_call": "process call",
    "arguments": "argument list",
    "value": "value",
    "variable": "variable",
    "coord": "coordinate",
}

# lark expands "x*" / "x+" inside a rule into helper rules named after it
_HELPER_RULE = re.compile(r"^__(\w+?)_(?:star|plus)_\d+$")


def _unescape(raw: str) -> str:
    return _ESCAPE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), raw[1:-1])


class DFTransformer(Transformer):
    """Builds syntax nodes bottom-up while lark reduces the grammar rules."""

    # --- Values ---
    def text(self, t):
        return Text(_unescape(str(t[0])))

    def number(self, n):
        return Number(str(n[0]))

    def bare_variable(self, v):
        return Variable(str(v[0]))

    def scoped_variable(self, v):
        prefix = str(v[0])[:-1]
        return Variable(str(v[1]), variable_scope(prefix))

    def coord(self, c):
        return float(c[0])

    def location(self, coords):
        return Location(*coords)

    def vector(self, coords):
        return Vector(*coords)

    def arguments(self, args):
        return list(args)

    # --- Statements ---
    def action_call(self, args):
        namespace, name, values = args
        return ActionCall(str(namespace), str(name), values)

    def assignment(self, args):
        variable, op, verb, values = args
        return Assignment(variable, str(op), str(verb), values)

    def if_player(self, args):
        negation, _, name, values, body = args
        return Conditional("player", str(name), values or [], body, negated=negation is not None)

    def if_namespace(self, args):
        namespace, name, values, body = args
        return Conditional(str(namespace), str(name), values or [], body)

    def if_var(self, args):
        variable, op, name, values, body = args
        return VarConditional(variable, str(op), str(name), values, body)

    def else_block(self, args):
        return Else(args[0])

    def select_step(self, args):
        action, sub_action, values = args
        return SelectStep(str(action), str(sub_action), values)

    def selection(self, args):
        return Selection(list(args[:-1]), args[-1])

    def func_call(self, args):
        return Call(str(args[0]))

    def proc_call(self, args):
        return Call(str(args[0]), process=True)

    def body(self, statements):
        return list(statements)

    # --- Units ---
    def _unit(self, kind, name_token, body):
        return Unit(kind, str(name_token), body, position=(name_token.line, name_token.column))

    def event_def(self, args):
        return self._unit("event", args[-2], args[-1])

    def proc_def(self, args):
        return self._unit("proc", args[0], args[1])

    def func_def(self, args):
        return self._unit("func", args[0], args[1])

    def start(self, units):
        return list(units)


class DFParser:
    _parsers = {}

    def __init__(self, grammar_path=GRAMMAR_PATH):
        if grammar_path not in self._parsers:
            with open(grammar_path, "r") as f:
                grammar = f.read()
            self._parsers[grammar_path] = lark.Lark(grammar, start="start", parser="lalr", transformer=DFTransformer())
            logger.info(f"Loaded grammar from {grammar_path}")
        self.parser = self._parsers[grammar_path]

    def parse(self, code: str) -> List[Unit]:
        """Parse a whole program. Any syntax error aborts with DFSyntaxError."""
        try:
            return self.parser.parse(code)
        except exceptions.UnexpectedInput as e:
            err = self._syntax_error(e, code)
            logger.error(err.args[0].splitlines()[0])
            raise err from None

    def _syntax_error(self, e: exceptions.UnexpectedInput, code: str) -> DFSyntaxError:
        opening = unclosed_brace(code)
        at_end = isinstance(e, exceptions.UnexpectedEOF) or (
            isinstance(e, exceptions.UnexpectedToken) and e.token.type == "$END"
        )
        if at_end and opening is not None:
            rule = "unclosed block"
        else:
            rule = e.match_examples(self.parser.parse, ERROR_EXAMPLES, use_accepts=True)
        if rule is None:
            name = rule_in_progress(getattr(e, "state", None))
            rule = RULE_LABELS.get(name, name.replace("_", " ")) if name else None

        err = DFSyntaxError.from_lark(e, code, rule=rule)
        if at_end and opening is not None:
            # Point at the block that was never closed rather than at the end
            err.line, err.column = opening
            err.args = (f"{err.args[0]}\nBlock opened at line {opening[0]}, column {opening[1]} is never closed",)
        return err


def _unfinished_rules(states, position: int, longest: int) -> Dict[str, int]:
    """Rules with an item in ``position`` whose dot is inside the expansion.

    Follows shifts and gotos forward; a reduce of a rule longer than the
    path walked to reach it belongs to an item already started in
    ``position``. Maps rule name -> symbols already matched.
    """
    progress = {}
    seen = set()
    frontier = [(position, 0)]
    while frontier:
        state, depth = frontier.pop()
        if (state, depth) in seen or depth >= longest:
            continue
        seen.add((state, depth))
        for action, arg in states[state].values():
            if action is Shift:
                frontier.append((arg, depth + 1))
            elif depth > 0 and len(arg.expansion) > depth:
                name = arg.origin.name
                progress[name] = max(progress.get(name, 0), len(arg.expansion) - depth)
    return progress


def rule_in_progress(state) -> Optional[str]:
    """Innermost grammar rule left unfinished when the parser stopped.

    ``state`` is the lark ParserState carried by the exception. Completed
    constructs on top of the stack are skipped, so an error after
    ``player.jump()`` names the enclosing construct.
    """
    parse_conf = getattr(state, "parse_conf", None)
    if parse_conf is None:
        return None
    states = parse_conf.states
    longest = max(
        len(arg.expansion)
        for actions in states.values()
        for action, arg in actions.values()
        if action is not Shift
    )
    for position in reversed(state.state_stack):
        progress = _unfinished_rules(states, position, longest)
        if progress:
            name = max(sorted(progress), key=progress.get)
            helper = _HELPER_RULE.match(name)
            return helper.group(1) if helper else name
    return None


def unclosed_brace(code: str) -> Optional[Tuple[int, int]]:
    """Position (line, column) of the innermost '{' left open, if any."""
    stack = []
    i = 0
    while i < len(code):
        if code[i] == '"':
            # Skip string literals, honouring backslash escapes
            i += 1
            while i < len(code) and code[i] != '"':
                i += 2 if code[i] == "\\" else 1
        elif code.startswith("//", i):
            end = code.find("\n", i)
            i = len(code) if end == -1 else end
        elif code[i] == "{":
            stack.append(i)
        elif code[i] == "}" and stack:
            stack.pop()
        i += 1

    if not stack:
        return None
    pos = stack[-1]
    return code.count("\n", 0, pos) + 1, pos - code.rfind("\n", 0, pos)

import unittest

from dfscript.blocks import (
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
from dfscript.compiler import compile_source
from dfscript.lowering import Lowerer, ScopeWriter, first_upper
from dfscript.nodes import ActionCall, Conditional, SelectStep, Selection, Unit
from dfscript.values import Number, Variable

OPEN = ScopeMarker(BracketDirection.OPEN, BracketType.NORM)
CLOSE = ScopeMarker(BracketDirection.CLOSE, BracketType.NORM)


def lower_body(body):
    """Compile ``body`` inside an event and drop the event block."""
    return compile_source("event player.join { %s }" % body)[0].blocks[1:]


def marker_depths(blocks):
    depth = 0
    depths = []
    for block in blocks:
        if isinstance(block, ScopeMarker):
            depth += 1 if block.direction is BracketDirection.OPEN else -1
        depths.append(depth)
    return depths


def summary(blocks):
    out = []
    for block in blocks:
        if isinstance(block, ScopeMarker):
            out.append(block.direction.value)
        else:
            out.append((block.kind, block.action))
    return out


class TestScopeWriter(unittest.TestCase):
    def test_wrap(self):
        head = Instruction(kind="if_player", action="IsSneaking")
        body = [Instruction(kind="player_action", action="Jump")]
        self.assertEqual(ScopeWriter().wrap(head, body), [head, OPEN, body[0], CLOSE])

    def test_repeat_shape(self):
        writer = ScopeWriter(BracketType.REPEAT)
        self.assertEqual(writer.open().to_json()["type"], "repeat")
        self.assertEqual(writer.wrap(Instruction(kind="repeat"), [])[-1].shape, BracketType.REPEAT)

    def test_first_upper(self):
        self.assertEqual(first_upper("sendMessage"), "SendMessage")
        self.assertEqual(first_upper(""), "")
        self.assertEqual(first_upper("="), "=")


class TestLowerer(unittest.TestCase):
    def setUp(self):
        self.lowerer = Lowerer()

    def test_unit_heads(self):
        self.assertEqual(self.lowerer.lower_unit(Unit("event", "join", [])), [EventDefinition(action="Join")])
        self.assertEqual(self.lowerer.lower_unit(Unit("func", "helper", [])), [FunctionDefinition(name="helper")])
        self.assertEqual(self.lowerer.lower_unit(Unit("proc", "worker", [])), [ProcessDefinition(name="worker")])

    def test_unknown_unit_kind(self):
        with self.assertRaises(ValueError):
            self.lowerer.lower_unit(Unit("loop", "x", []))

    def test_nodes_without_parser(self):
        node = Conditional("entity", "isNear", [Number("3")], [ActionCall("plot", "broadcast", [])])
        blocks = self.lowerer.visit(node)
        self.assertEqual(summary(blocks), [("if_entity", "IsNear"), "open", ("game_action", "Broadcast"), "close"])
        self.assertEqual(blocks[0].target, "Selection")

    def test_selection_node(self):
        node = Selection([SelectStep("allPlayers", "nil", [])], [])
        blocks = self.lowerer.visit(node)
        self.assertEqual(summary(blocks), [("select_obj", "AllPlayers"), ("select_obj", "Reset")])


class TestActions(unittest.TestCase):
    def test_namespaces(self):
        blocks = lower_body("player.jump(); entity.heal(5); plot.broadcast()")
        self.assertEqual(summary(blocks), [
            ("player_action", "Jump"),
            ("entity_action", "Heal"),
            ("game_action", "Broadcast"),
        ])
        self.assertTrue(all(b.target == "Selection" for b in blocks))
        self.assertTrue(all(b.inverted == "" and b.sub_action == "" and b.data == "" for b in blocks))

    def test_plain_slots(self):
        (block,) = lower_body('player.sendMessage("a", "b", 3)')
        self.assertEqual([i.slot for i in block.items], [0, 1, 2])


class TestAssignment(unittest.TestCase):
    def test_set_variable(self):
        (block,) = lower_body("var x = add(1)")
        self.assertEqual(block.kind, "set_var")
        self.assertEqual(block.action, "Add")
        self.assertEqual(block.target, "")
        self.assertEqual([(i.slot, i.tag) for i in block.items], [(0, "var"), (1, "num")])
        self.assertEqual(block.items[0].value, Variable("x"))
        self.assertEqual(block.items[1].data, {"name": "1"})

    def test_placeholder_verb_uses_operator(self):
        self.assertEqual(lower_body("var x = with(1)")[0].action, "=")
        self.assertEqual(lower_body("var x + with(1)")[0].action, "+")
        self.assertEqual(lower_body("var x % with(2, 3)")[0].action, "%")

    def test_prefixed_slots(self):
        (block,) = lower_body("var local:i = randomNumber(1, 10)")
        self.assertEqual([i.slot for i in block.items], [0, 1, 2])
        self.assertEqual(block.items[0].data, {"name": "i", "scope": "local"})


class TestConditionals(unittest.TestCase):
    def test_negated_player_condition(self):
        blocks = lower_body("if !player.isSneaking { player.jump() }")
        self.assertEqual(blocks, [
            Instruction(kind="if_player", action="IsSneaking", target="Selection", inverted="NOT"),
            OPEN,
            Instruction(kind="player_action", action="Jump", target="Selection"),
            CLOSE,
        ])

    def test_condition_kinds(self):
        blocks = lower_body("if player.a { }; if entity.b { }; if plot.c { }")
        heads = [b for b in blocks if isinstance(b, Instruction)]
        self.assertEqual([h.kind for h in heads], ["if_player", "if_entity", "if_game"])
        self.assertTrue(all(h.inverted == "" for h in heads))

    def test_condition_arguments(self):
        (head, *_rest) = lower_body('if player.hasItem("stick", 2) { }')
        self.assertEqual([i.slot for i in head.items], [0, 1])

    def test_var_condition(self):
        blocks = lower_body("if var x = equals(1) { plot.broadcast() }")
        head = blocks[0]
        self.assertEqual((head.kind, head.action, head.target), ("if_var", "Equals", ""))
        self.assertEqual([(i.slot, i.tag) for i in head.items], [(0, "var"), (1, "num")])
        self.assertEqual(blocks[1], OPEN)
        self.assertEqual(blocks[-1], CLOSE)

    def test_var_condition_does_not_substitute_operator(self):
        # Assignments turn "with" into the operator; variable conditions keep the name
        assign = lower_body("var x = with(1)")[0]
        condition = lower_body("if var x = with(1) { }")[0]
        self.assertEqual(assign.action, "=")
        self.assertEqual(condition.action, "With")

    def test_else(self):
        blocks = lower_body("if player.isSneaking { player.jump() }; else { plot.broadcast() }")
        self.assertEqual(summary(blocks), [
            ("if_player", "IsSneaking"), "open", ("player_action", "Jump"), "close",
            ("else", ""), "open", ("game_action", "Broadcast"), "close",
        ])
        self.assertEqual(blocks[4].target, "Selection")

    def test_empty_body(self):
        self.assertEqual(summary(lower_body("if plot.x { }")), [("if_game", "X"), "open", "close"])

    def test_nested_markers_balance(self):
        blocks = lower_body(
            "if player.a { if entity.b { player.c() }; else { if var x = y() { plot.d() } } }; player.e()"
        )
        depths = marker_depths(blocks)
        self.assertTrue(all(d >= 0 for d in depths))
        self.assertEqual(depths[-1], 0)
        self.assertEqual(max(depths), 3)
        for i, block in enumerate(blocks):
            if isinstance(block, Instruction) and block.kind in ("if_player", "if_entity", "if_var", "else"):
                self.assertEqual(blocks[i + 1], OPEN)


class TestSelections(unittest.TestCase):
    def test_selection_chain(self):
        blocks = lower_body("select a::b(1) -> c::nil() { plot.broadcast() }")
        self.assertEqual(len(blocks), 4)
        first, second, body, reset = blocks
        self.assertEqual((first.kind, first.action, first.sub_action), ("select_obj", "A", "B"))
        self.assertEqual([(i.slot, i.data) for i in first.items], [(1, {"name": "1"})])
        self.assertEqual((second.action, second.sub_action, second.items), ("C", "", ()))
        self.assertEqual((body.kind, body.action), ("game_action", "Broadcast"))
        self.assertEqual(reset, Instruction(kind="select_obj", action="Reset"))
        self.assertEqual(first.target, "")

    def test_selection_uses_no_markers(self):
        blocks = lower_body("select a::b() { player.jump() }")
        self.assertFalse(any(isinstance(b, ScopeMarker) for b in blocks))

    def test_nested_selections_each_reset(self):
        blocks = lower_body("select a::b() { select c::d() { player.jump() }; player.jump() }")
        self.assertEqual(summary(blocks), [
            ("select_obj", "A"),
            ("select_obj", "C"),
            ("player_action", "Jump"),
            ("select_obj", "Reset"),
            ("player_action", "Jump"),
            ("select_obj", "Reset"),
        ])

    def test_selection_inside_conditional(self):
        blocks = lower_body("if player.isSneaking { select a::nil() { plot.broadcast() } }")
        self.assertEqual(summary(blocks), [
            ("if_player", "IsSneaking"),
            "open",
            ("select_obj", "A"),
            ("game_action", "Broadcast"),
            ("select_obj", "Reset"),
            "close",
        ])

    def test_empty_selection_body(self):
        blocks = lower_body("select a::b() { }")
        self.assertEqual(summary(blocks), [("select_obj", "A"), ("select_obj", "Reset")])


class TestCalls(unittest.TestCase):
    def test_calls(self):
        blocks = lower_body("call helper(); start worker()")
        self.assertEqual(blocks, [FunctionCall(name="helper"), ProcessCall(name="worker")])


if __name__ == "__main__":
    unittest.main()

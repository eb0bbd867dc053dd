import unittest
import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from trunclint.js_analyzer import parse_source, unwrap_parentheses
from trunclint.side_effects import describe_side_effect, has_side_effect


def expression(code):
    """Parse ``(code);`` and return the expression node plus its source."""
    source = f"({code});".encode("utf-8")
    tree = parse_source(source)
    statement = tree.root_node.named_children[0]
    return unwrap_parentheses(statement.named_children[0]), source


class TestHasSideEffect(unittest.TestCase):

    def test_pure_expressions(self):
        for code in ("a", "a.b", "a[b]", "a.b.c[0]", "-a", "typeof a", "a + b",
                     "() => f()", "function () { f(); }", "[a, b]", "{ k: v }"):
            with self.subTest(code=code):
                node, source = expression(code)
                self.assertFalse(has_side_effect(node, source))

    def test_effectful_expressions(self):
        for code in ("f()", "a[f()]", "f().b", "new A()", "a++", "--a",
                     "delete a.b", "a = 1", "a += 1", "tag`x`", "[g()]"):
            with self.subTest(code=code):
                node, source = expression(code)
                self.assertTrue(has_side_effect(node, source))

    def test_getters_are_opt_in(self):
        node, source = expression("a.b")
        self.assertFalse(has_side_effect(node, source))
        self.assertTrue(has_side_effect(node, source, consider_getters=True))

        node, source = expression("a")
        self.assertFalse(has_side_effect(node, source, consider_getters=True))

    def test_describe(self):
        node, source = expression("a[f()].b")
        self.assertEqual(describe_side_effect(node, source), "f()")
        node, source = expression("a.b")
        self.assertEqual(describe_side_effect(node, source), "")


if __name__ == "__main__":
    unittest.main()

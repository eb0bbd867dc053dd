"""
MCP server tests: the tool functions are plain callables after
registration, so they are driven directly against a temporary workspace.
"""
import unittest
import os
import sys
import json
import tempfile

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

import fastmcp_server as server

SOURCE = """\
function scale(value) {
  return~~(value * 10);
}
let n = 3.7;
n >>= 0;
const bits = n | 0;
getTarget().value |= 0;
"""


class TestServerTools(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name
        with open(os.path.join(self.tmp, "app.js"), "w") as f:
            f.write(SOURCE)
        server.configure()
        self.assertIn("Workspace set", server.set_workspace(self.tmp))

    def tearDown(self):
        self._tmp.cleanup()

    def _read(self):
        with open(os.path.join(self.tmp, "app.js")) as f:
            return f.read()

    def test_requires_workspace(self):
        server.context_provider = None
        self.assertTrue(server.lint_file("app.js").startswith("Error: Not initialised"))
        self.assertIn("not found", server.set_workspace(os.path.join(self.tmp, "missing")))

    def test_lint_file_lists_fix_kinds(self):
        report = server.lint_file("app.js")
        self.assertIn("4 problem(s)", report)
        self.assertIn("Use `Math.trunc` instead of `~~`.", report)
        self.assertIn("| 6 | 14 | error | Use `Math.trunc` instead of `| 0`. | suggestion | pending |", report)
        self.assertIn("| 7 | 1 | error | Use `Math.trunc` instead of `|= 0`. | none | pending |", report)

    def test_explain_rule(self):
        md = server.explain_rule()
        self.assertIn("## prefer-math-trunc", md)
        self.assertIn("error-bitwise-not", md)
        self.assertIn("Unknown rule", server.explain_rule("no-such-rule"))

    def test_propose_fix_preview(self):
        md = server.propose_fix("app.js", 2)
        self.assertIn("Fix (Auto-Apply Available)", md)
        self.assertIn("> 2 |   return~~(value * 10);", md)
        self.assertIn("  5 | n >>= 0;", md)
        self.assertIn("  return Math.trunc(value * 10);", md)

        md = server.propose_fix("app.js", 6)
        self.assertIn("Suggestion", md)
        self.assertIn("const bits = Math.trunc(n);", md)

        md = server.propose_fix("app.js", 7)
        self.assertIn("No Fix", md)

    def test_apply_and_verify(self):
        result = server.apply_fix("app.js", 5)
        self.assertIn("Successfully applied", result)
        self.assertIn("n = Math.trunc(n);", self._read())
        self.assertIn("VERIFIED", server.verify_fix("app.js", 5))

    def test_suggestion_needs_acceptance(self):
        self.assertIn("Auto-fix not available", server.apply_fix("app.js", 6))
        self.assertIn("const bits = n | 0;", self._read())

        self.assertIn("Successfully applied the suggestion",
                      server.apply_fix("app.js", 6, accept_suggestion=True))
        self.assertIn("const bits = Math.trunc(n);", self._read())

    def test_side_effect_target_is_never_fixed(self):
        result = server.apply_fix("app.js", 7, accept_suggestion=True)
        self.assertIn("side effects (`getTarget()`)", result)
        self.assertIn("getTarget().value |= 0;", self._read())

    def test_closest_line_fallback(self):
        result = server.propose_fix("app.js", 3)
        self.assertIn("Closest match", result)

    def test_fix_all(self):
        dry = server.fix_all("app.js", dry_run=True)
        self.assertIn("| Would fix | 2 |", dry)
        self.assertEqual(self._read(), SOURCE)

        summary = server.fix_all("app.js")
        self.assertIn("| Fixes applied | 2 |", summary)
        self.assertIn("| Remaining | 2 |", summary)
        text = self._read()
        self.assertIn("return Math.trunc(value * 10);", text)
        self.assertIn("n = Math.trunc(n);", text)
        self.assertIn("const bits = n | 0;", text)

    def test_workspace_config_file(self):
        with open(os.path.join(self.tmp, ".trunclintrc.json"), "w") as f:
            json.dump({"severity": "warn", "maxFixPasses": 2}, f)
        result = server.set_workspace(self.tmp)
        self.assertIn("Loaded `.trunclintrc.json`", result)
        self.assertEqual(server.config.max_fix_passes, 2)
        self.assertIn("| 2 | 9 | warning |", server.lint_file("app.js"))

        with open(os.path.join(self.tmp, ".trunclintrc.json"), "w") as f:
            json.dump({"colour": "blue"}, f)
        self.assertTrue(server.set_workspace(self.tmp).startswith("Error: Invalid"))

    def test_configure(self):
        self.assertTrue(server.configure(severity="loud").startswith("Error"))
        server.configure(severity="off")
        self.assertIn("No diagnostics", server.lint_file("app.js"))
        server.configure()


if __name__ == "__main__":
    unittest.main()

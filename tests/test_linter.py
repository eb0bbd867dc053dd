"""
Linter host tests:
  1. Parse errors, severity levels and config handling
  2. File linting / fixing (missing and binary files, dry run)
  3. Fail-soft rule dispatch
  4. BatchFixer and ContextProvider
"""
import unittest
import os
import sys
import tempfile

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from trunclint.batch_fixer import BatchFixer
from trunclint.config import LintConfig
from trunclint.context_provider import ContextProvider
from trunclint.edits import Edit
from trunclint.linter import Linter, apply_fixes
from trunclint.prefer_math_trunc import RULE
from trunclint.rule_base import Rule, RuleEntry


def _write(directory, name, content):
    path = os.path.join(directory, name)
    mode = "wb" if isinstance(content, bytes) else "w"
    with open(path, mode) as f:
        f.write(content)
    return path


class TestLinterHost(unittest.TestCase):

    def test_parse_error_is_single_fatal_message(self):
        result = Linter().lint_text("a >> ;\n~~x;")
        self.assertTrue(result.fatal)
        self.assertEqual(len(result.messages), 1)
        m = result.messages[0]
        self.assertIsNone(m.rule_id)
        self.assertTrue(m.message.startswith("Parsing error"))
        self.assertEqual(m.severity, "error")

    def test_fix_text_leaves_unparsable_source_alone(self):
        code = "a >> ;\n~~x;"
        result = Linter().fix_text(code)
        self.assertFalse(result.fixed)
        self.assertEqual(result.output, code)

    def test_severity_levels(self):
        self.assertEqual(Linter(LintConfig(severity="off")).lint_text("~~x;").messages, [])
        warn = Linter(LintConfig(severity="warn")).lint_text("~~x;")
        self.assertEqual(warn.messages[0].severity, "warning")
        self.assertEqual(warn.warning_count, 1)
        self.assertEqual(warn.error_count, 0)

    def test_messages_are_sorted_by_position(self):
        result = Linter().lint_text("b << 0;\n~~y;\na >> 0;")
        self.assertEqual([m.line for m in result.messages], [1, 2, 3])
        self.assertEqual(result.fixable_count, 3)

    def test_pass_limit(self):
        result = Linter(LintConfig(max_fix_passes=1)).fix_text("~~~~x;")
        self.assertEqual(result.output, "~~Math.trunc(x);")
        self.assertEqual(result.passes, 1)
        self.assertEqual(len(result.messages), 1)

    def test_failing_check_does_not_stop_analysis(self):
        def broken(node, ctx):
            raise RuntimeError("boom")

        bad = Rule(meta=RULE.meta, entries=(RuleEntry(("unary_expression",), broken),))
        result = Linter(rules=(bad, RULE)).lint_text("~~x;")
        self.assertEqual(len(result.messages), 1)
        self.assertEqual(result.messages[0].message_id, "error-bitwise-not")

    def test_apply_fixes_skips_overlap(self):
        messages = Linter().lint_text("(a >> 0) >> 0;").messages
        output, applied = apply_fixes(b"(a >> 0) >> 0;", messages)
        self.assertEqual(applied, 1)
        self.assertEqual(output, b"Math.trunc(a >> 0);")

    def test_suggestion_index_out_of_range(self):
        m = Linter().lint_text("~~x;").messages[0]
        with self.assertRaises(IndexError):
            Linter.apply_suggestion("~~x;", m)


class TestLinterFiles(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_lint_and_fix_file(self):
        path = _write(self.tmp, "calc.js", "export const f = (x) => x >> 0;\n")
        linter = Linter()
        self.assertEqual(len(linter.lint_file(path).messages), 1)

        dry = linter.fix_file(path, dry_run=True)
        self.assertTrue(dry.fixed)
        with open(path) as f:
            self.assertEqual(f.read(), "export const f = (x) => x >> 0;\n")

        linter.fix_file(path)
        with open(path) as f:
            self.assertEqual(f.read(), "export const f = (x) => Math.trunc(x);\n")
        self.assertEqual(linter.lint_file(path).messages, [])

    def test_missing_and_binary_files(self):
        linter = Linter()
        self.assertEqual(linter.lint_file(os.path.join(self.tmp, "nope.js")).messages, [])
        path = _write(self.tmp, "blob.js", b"\x00\x01~~x;")
        self.assertEqual(linter.lint_file(path).messages, [])
        self.assertFalse(linter.fix_file(path).fixed)


class TestConfig(unittest.TestCase):

    def test_from_dict_accepts_camel_case(self):
        config = LintConfig.from_dict({"severity": "warn", "maxFixPasses": 3,
                                       "considerGetters": True})
        self.assertEqual(config.severity, "warn")
        self.assertEqual(config.max_fix_passes, 3)
        self.assertTrue(config.consider_getters)
        self.assertEqual(config.reported_severity, "warning")

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            LintConfig(severity="fatal")
        with self.assertRaises(ValueError):
            LintConfig(max_fix_passes=0)
        with self.assertRaises(ValueError):
            LintConfig.from_dict({"colour": "blue"})

    def test_handles_extensions(self):
        config = LintConfig()
        self.assertTrue(config.handles("src/app.mjs"))
        self.assertTrue(config.handles("App.JSX"))
        self.assertFalse(config.handles("main.c"))


class TestBatchFixer(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_apply_and_dry_run(self):
        path = _write(self.tmp, "a.js", "a |= 0;")
        edits = [{"start_byte": 2, "end_byte": 4, "text": "="},
                 Edit(5, 6, "Math.trunc(a)")]
        fixer = BatchFixer()

        summary = fixer.apply_fixes_by_file({path: edits}, dry_run=True)
        self.assertEqual(summary[path], 2)
        with open(path) as f:
            self.assertEqual(f.read(), "a |= 0;")

        fixer.apply_fixes_by_file({path: edits})
        with open(path) as f:
            self.assertEqual(f.read(), "a = Math.trunc(a);")

    def test_overlap_and_missing_file(self):
        fixer = BatchFixer()
        content, applied = fixer.apply_to_bytes(
            b"return~~x;", [Edit(6, 9, "Math.trunc(x)"), Edit(6, 6, " "), Edit(2, 7, "zz")]
        )
        self.assertEqual(applied, 2)
        self.assertEqual(content, b"return Math.trunc(x);")

        missing = os.path.join(self.tmp, "gone.js")
        self.assertEqual(fixer.apply_fixes_by_file({missing: [Edit(0, 0, "x")]}), {missing: 0})


class TestContextProvider(unittest.TestCase):

    def test_lines_and_context(self):
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, "m.js", "".join(f"line{i}\n" for i in range(1, 21)))
            provider = ContextProvider(tmp)
            context = provider.get_code_context("m.js", 10, context_lines=2)
            self.assertEqual(context, "line8\nline9\nline10\nline11\nline12\n")
            self.assertEqual(provider.get_code_context("m.js", 99, context_lines=2), "")
            self.assertTrue(provider.get_code_context("x.js", 1).startswith("Error"))

            small = ContextProvider(tmp, max_lines=5)
            self.assertEqual(small.get_code_context("m.js", 6, context_lines=0), "")
            self.assertEqual(small.get_code_context("m.js", 5, context_lines=10),
                             "line1\nline2\nline3\nline4\nline5\n")

    def test_numbered_window_marks_target_line(self):
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, "m.js", "".join(f"line{i}\r\n" for i in range(1, 21)))
            provider = ContextProvider(tmp)
            context = provider.get_code_context("m.js", 10, context_lines=1, numbered=True)
            self.assertEqual(context, "   9 | line9\n> 10 | line10\n  11 | line11\n")

    def test_binary_file_is_not_served(self):
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, "blob.js", b"\x00\x01~~x;")
            self.assertTrue(ContextProvider(tmp).get_code_context("blob.js", 1).startswith("Error"))


if __name__ == "__main__":
    unittest.main()

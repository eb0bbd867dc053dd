"""
Linter — single-pass traversal host for the trunclint rules.

Parses a JavaScript source with tree-sitter, walks the tree once in
depth-first order, and hands every node to the rule checks registered for
its type.  Diagnostics are converted to ``LintMessage`` records.

Fixing mirrors the usual eslint loop: apply every non-overlapping
guaranteed fix, re-lint, and repeat until nothing changes or the pass limit
is hit.  A pass whose output no longer parses is rolled back.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import LintConfig
from .diagnostics import Diagnostic, FixResult, LintMessage, LintResult
from .js_analyzer import first_error, parse_source, read_source, walk_all
from .prefer_math_trunc import RULE as PREFER_MATH_TRUNC
from .reporter import Reporter, parse_error_message, to_lint_message
from .rule_base import Check, Rule, RuleContext

logger = logging.getLogger(__name__)

DEFAULT_RULES: Tuple[Rule, ...] = (PREFER_MATH_TRUNC,)


def _as_bytes(source: Union[str, bytes]) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    return source


def apply_fixes(source: bytes, messages: Sequence[LintMessage]) -> Tuple[bytes, int]:
    """Apply the guaranteed fixes of ``messages`` that do not overlap.

    Fixes are taken in source order; one that starts at or before the end
    of the previously applied fix is left for a later pass.
    """
    fixable = sorted(
        (m for m in messages if m.fix is not None),
        key=lambda m: (m.fix.start_byte, m.fix.end_byte),
    )
    parts: List[bytes] = []
    cursor = 0
    last_end = -1
    applied = 0
    for message in fixable:
        fix = message.fix
        if last_end >= fix.start_byte or fix.start_byte > fix.end_byte:
            continue
        parts.append(source[cursor:fix.start_byte])
        parts.append(fix.text.encode("utf-8"))
        cursor = fix.end_byte
        last_end = fix.end_byte
        applied += 1
    parts.append(source[cursor:])
    return b"".join(parts), applied


class Linter:
    """Runs a fixed set of rules over JavaScript sources."""

    def __init__(self, config: Optional[LintConfig] = None,
                 rules: Sequence[Rule] = DEFAULT_RULES):
        self.config = config or LintConfig()
        self.rules = tuple(rules)
        self._dispatch: Dict[str, List[Tuple[Rule, Check]]] = {}
        for rule in self.rules:
            for entry in rule.entries:
                for node_type in entry.node_types:
                    self._dispatch.setdefault(node_type, []).append((rule, entry.check))

    # ────────────────────────────────────────────────────────────────
    #  Linting
    # ────────────────────────────────────────────────────────────────

    def _verify(self, source: bytes) -> List[LintMessage]:
        if not self.config.enabled:
            return []

        tree = parse_source(source)
        error = first_error(tree.root_node)
        if error is not None:
            return [parse_error_message(error, source)]

        found: List[Tuple[Rule, Diagnostic]] = []
        contexts: Dict[int, RuleContext] = {}
        for rule in self.rules:
            sink = (lambda d, r=rule: found.append((r, d)))
            contexts[id(rule)] = RuleContext(
                source=source,
                reporter=Reporter(sink),
                consider_getters=self.config.consider_getters,
            )

        for node in walk_all(tree.root_node):
            for rule, check in self._dispatch.get(node.type, ()):
                try:
                    check(node, contexts[id(rule)])
                except Exception as e:
                    logger.warning(
                        "Rule %s failed on %s at byte %d: %s",
                        rule.rule_id, node.type, node.start_byte, e,
                    )

        severity = self.config.reported_severity
        messages = [to_lint_message(d, rule.meta, source, severity) for rule, d in found]
        messages.sort(key=lambda m: (m.line, m.column))
        return messages

    def lint_text(self, source: Union[str, bytes], file_path: str = "<input>") -> LintResult:
        return LintResult(file_path=file_path, messages=self._verify(_as_bytes(source)))

    def lint_file(self, file_path: str) -> LintResult:
        source = read_source(file_path)
        if source is None:
            return LintResult(file_path=file_path)
        result = self.lint_text(source, file_path)
        logger.info("Linted %s: %d problem(s)", file_path, len(result.messages))
        return result

    # ────────────────────────────────────────────────────────────────
    #  Fixing
    # ────────────────────────────────────────────────────────────────

    def fix_text(self, source: Union[str, bytes], file_path: str = "<input>") -> FixResult:
        original = current = _as_bytes(source)
        applied_total = 0
        passes = 0

        for _ in range(self.config.max_fix_passes):
            messages = self._verify(current)
            if any(m.fatal for m in messages):
                break
            output, applied = apply_fixes(current, messages)
            if applied == 0:
                break
            passes += 1
            if first_error(parse_source(output).root_node) is not None:
                logger.warning(
                    "Fix pass %d on %s produced unparsable output; rolled back",
                    passes, file_path,
                )
                break
            current = output
            applied_total += applied

        return FixResult(
            file_path=file_path,
            output=current.decode("utf-8", errors="replace"),
            fixed=current != original,
            applied=applied_total,
            passes=passes,
            messages=self._verify(current),
        )

    def fix_file(self, file_path: str, dry_run: bool = False) -> FixResult:
        source = read_source(file_path)
        if source is None:
            return FixResult(file_path=file_path, output="")
        result = self.fix_text(source, file_path)
        if result.fixed and not dry_run:
            with open(file_path, "wb") as f:
                f.write(result.output.encode("utf-8"))
            logger.info("Applied %d fix(es) to %s", result.applied, file_path)
        return result

    @staticmethod
    def apply_suggestion(source: Union[str, bytes], message: LintMessage,
                         index: int = 0) -> str:
        """Return ``source`` with one suggestion of ``message`` applied."""
        if not 0 <= index < len(message.suggestions):
            raise IndexError(
                f"Message has {len(message.suggestions)} suggestion(s); "
                f"index {index} is out of range"
            )
        fix = message.suggestions[index].fix
        data = _as_bytes(source)
        output = data[:fix.start_byte] + fix.text.encode("utf-8") + data[fix.end_byte:]
        return output.decode("utf-8", errors="replace")

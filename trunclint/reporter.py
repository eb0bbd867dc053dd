"""
Diagnostic Reporter.

Rules call ``Reporter.report()`` once per match.  The reporter packages the
node, message id, data and fix policy into a ``Diagnostic`` and forwards it
to the host sink unchanged: no filtering, ordering or deduplication.

``to_lint_message()`` converts a ``Diagnostic`` to the serialisable
``LintMessage`` (rendered text, 1-based positions, merged fixes).
"""

import logging
from typing import Callable, Dict, Iterable, Optional

from tree_sitter import Node

from .diagnostics import (
    Diagnostic, FixRecord, LintMessage, Suggestion, SuggestionRecord,
)
from .edits import Edit, EditScript
from .js_analyzer import position
from .rule_catalog import RuleMeta, render_message

logger = logging.getLogger(__name__)

# eslint-style severities accepted from config, mapped to the reported level
SEVERITY_LEVELS = {"off": None, "warn": "warning", "warning": "warning", "error": "error"}


class Reporter:
    def __init__(self, sink: Callable[[Diagnostic], None]):
        self._sink = sink

    def report(
        self,
        node: Node,
        message_id: str,
        data: Optional[Dict[str, str]] = None,
        fix: Optional[Iterable[Edit]] = None,
        suggestion_id: Optional[str] = None,
    ) -> Diagnostic:
        """Build and forward one diagnostic.

        With ``suggestion_id`` the edits are attached as a suggestion rather
        than a guaranteed fix; with ``fix=None`` the diagnostic is fix-less.
        """
        data = dict(data or {})
        script = EditScript(fix) if fix is not None else None

        if script is not None and suggestion_id:
            diagnostic = Diagnostic(
                node=node, message_id=message_id, data=data,
                suggestions=[Suggestion(suggestion_id, script, data)],
            )
        else:
            diagnostic = Diagnostic(node=node, message_id=message_id,
                                    data=data, fix=script)

        self._sink(diagnostic)
        return diagnostic


def _fix_record(script: EditScript, source: bytes) -> FixRecord:
    merged = script.merged(source)
    return FixRecord(start_byte=merged.start_byte, end_byte=merged.end_byte,
                     text=merged.text)


def to_lint_message(diagnostic: Diagnostic, rule: RuleMeta, source: bytes,
                    severity: str = "error") -> LintMessage:
    node = diagnostic.node
    line, column = position(source, node.start_byte)
    end_line, end_column = position(source, node.end_byte)

    template = rule.messages.get(diagnostic.message_id, diagnostic.message_id)
    suggestions = []
    for s in diagnostic.suggestions:
        desc_template = rule.messages.get(s.message_id, s.message_id)
        suggestions.append(SuggestionRecord(
            message_id=s.message_id,
            desc=render_message(desc_template, s.data),
            fix=_fix_record(s.fix, source),
        ))

    return LintMessage(
        rule_id=rule.rule_id,
        severity=severity,
        message=render_message(template, diagnostic.data),
        message_id=diagnostic.message_id,
        line=line,
        column=column,
        end_line=end_line,
        end_column=end_column,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        fix=_fix_record(diagnostic.fix, source) if diagnostic.fix is not None else None,
        suggestions=suggestions,
    )


def parse_error_message(error_node: Node, source: bytes) -> LintMessage:
    """Fatal message for a source that tree-sitter could not parse cleanly."""
    line, column = position(source, error_node.start_byte)
    if error_node.is_missing:
        detail = f"Missing `{error_node.type}`"
    else:
        snippet = source[error_node.start_byte:error_node.end_byte][:40]
        detail = "Unexpected token" + (
            f" `{snippet.decode('utf-8', errors='replace')}`" if snippet else ""
        )
    logger.debug("Parse error at %d:%d: %s", line, column, detail)
    return LintMessage(
        severity="error",
        message=f"Parsing error: {detail}",
        line=line,
        column=column,
        end_line=line,
        end_column=column,
        start_byte=error_node.start_byte,
        end_byte=error_node.start_byte,
        fatal=True,
    )

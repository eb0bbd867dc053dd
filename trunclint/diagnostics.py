"""
Diagnostic data types.

``Diagnostic`` is the in-memory result of a rule match: it still points at
the tree-sitter node and carries the raw ``EditScript``.  ``LintMessage`` is
its serialisable form (positions resolved, template rendered, edit scripts
merged), used by the linter results and the MCP tools.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from tree_sitter import Node

from .edits import EditScript


@dataclass
class Suggestion:
    message_id: str
    fix: EditScript
    data: Dict[str, str] = field(default_factory=dict)


@dataclass
class Diagnostic:
    """A single rule match.

    Carries a guaranteed ``fix``, a list of ``suggestions``, or neither.
    Never both.
    """
    node: Node
    message_id: str
    data: Dict[str, str] = field(default_factory=dict)
    fix: Optional[EditScript] = None
    suggestions: List[Suggestion] = field(default_factory=list)

    def __post_init__(self):
        if self.fix is not None and self.suggestions:
            raise ValueError(
                f"Diagnostic '{self.message_id}' has both a fix and suggestions"
            )

    @property
    def fix_kind(self) -> str:
        if self.fix is not None:
            return "fix"
        if self.suggestions:
            return "suggestion"
        return "none"


# ═══════════════════════════════════════════════════════════════════════
#  Serialisable records
# ═══════════════════════════════════════════════════════════════════════

class FixRecord(BaseModel):
    start_byte: int
    end_byte: int
    text: str


class SuggestionRecord(BaseModel):
    message_id: str
    desc: str
    fix: FixRecord


class LintMessage(BaseModel):
    rule_id: Optional[str] = None
    severity: str = "error"
    message: str
    message_id: Optional[str] = None
    line: int
    column: int
    end_line: int
    end_column: int
    start_byte: int = 0
    end_byte: int = 0
    fix: Optional[FixRecord] = None
    suggestions: List[SuggestionRecord] = Field(default_factory=list)
    fatal: bool = False

    @property
    def fix_kind(self) -> str:
        if self.fix is not None:
            return "fix"
        if self.suggestions:
            return "suggestion"
        return "none"


class LintResult(BaseModel):
    file_path: str
    messages: List[LintMessage] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for m in self.messages if m.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for m in self.messages if m.severity == "warning")

    @property
    def fixable_count(self) -> int:
        return sum(1 for m in self.messages if m.fix is not None)

    @property
    def fatal(self) -> bool:
        return any(m.fatal for m in self.messages)


class FixResult(BaseModel):
    file_path: str
    output: str
    fixed: bool = False
    applied: int = 0
    passes: int = 0
    messages: List[LintMessage] = Field(default_factory=list)

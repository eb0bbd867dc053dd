"""
Rule Catalog

Structured metadata for the lint rules shipped by trunclint.  Each entry
provides the rule id, type, description, message templates, and
compliant / non-compliant examples used when explaining a rule.

Detection and fix generation live in the rule modules (prefer_math_trunc.py).
"""

import re
from typing import Dict, Optional, List
from dataclasses import dataclass, field

ERROR_BITWISE = "error-bitwise"
ERROR_BITWISE_NOT = "error-bitwise-not"
SUGGESTION_BITWISE = "suggestion-bitwise"

_PLACEHOLDER = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


@dataclass
class RuleMeta:
    rule_id: str
    type: str                              # "problem" | "suggestion" | "layout"
    description: str
    messages: Dict[str, str]               # message_id -> template
    non_compliant: str                     # code example
    compliant: str                         # fixed code example
    recommended: bool = True
    fixable: Optional[str] = None          # "code" | "whitespace" | None
    has_suggestions: bool = False
    notes: List[str] = field(default_factory=list)


def render_message(template: str, data: Optional[Dict[str, str]] = None) -> str:
    """Interpolate ``{{name}}`` placeholders; unknown names are left as written."""
    data = data or {}

    def _sub(m):
        key = m.group(1)
        if key in data:
            return str(data[key])
        return m.group(0)

    return _PLACEHOLDER.sub(_sub, template)


# ═══════════════════════════════════════════════════════════════════════
#  Catalog
# ═══════════════════════════════════════════════════════════════════════

_RULES: Dict[str, RuleMeta] = {}


def _add(rule: RuleMeta):
    _RULES[rule.rule_id] = rule


_add(RuleMeta(
    rule_id="prefer-math-trunc",
    type="suggestion",
    description="Enforce the use of `Math.trunc` instead of bitwise operators.",
    messages={
        ERROR_BITWISE: "Use `Math.trunc` instead of `{{operator}} {{value}}`.",
        ERROR_BITWISE_NOT: "Use `Math.trunc` instead of `~~`.",
        SUGGESTION_BITWISE: "Replace `{{operator}} {{value}}` with `Math.trunc`.",
    },
    non_compliant="""\
const foo = 37.4 | 0;
const bar = ~~37.4;
let baz = 37.4;
baz >>= 0;
baz |= 0;""",
    compliant="""\
const foo = Math.trunc(37.4);
const bar = Math.trunc(37.4);
let baz = 37.4;
baz = Math.trunc(baz);""",
    fixable="code",
    has_suggestions=True,
    notes=[
        "`x | 0` is only offered as a suggestion: it is a common, sometimes "
        "deliberate int32 coercion, so it is never rewritten automatically.",
        "Compound assignments whose target has side effects (calls, updates, "
        "`delete`) are reported without a fix, since the target would have "
        "to be evaluated twice.",
        "Only the literal `0` is matched; expressions that merely evaluate to "
        "zero are ignored.",
    ],
))


def get_rule(rule_id: str) -> Optional[RuleMeta]:
    """Look up a rule by id."""
    return _RULES.get(rule_id)


def get_all_rules() -> Dict[str, RuleMeta]:
    """Return a copy of the full catalog."""
    return dict(_RULES)


def format_rule_explanation(rule_id: str) -> str:
    """Render a rule as markdown for display."""
    rule = get_rule(rule_id)
    if rule is None:
        known = ", ".join(f"`{r}`" for r in sorted(_RULES))
        return f"Unknown rule `{rule_id}`. Known rules: {known}"

    md = f"## {rule.rule_id}\n\n"
    md += f"{rule.description}\n\n"
    md += f"- **Type**: {rule.type}\n"
    md += f"- **Recommended**: {'yes' if rule.recommended else 'no'}\n"
    md += f"- **Auto-fixable**: {rule.fixable or 'no'}\n"
    md += f"- **Has suggestions**: {'yes' if rule.has_suggestions else 'no'}\n\n"

    md += "### Messages\n"
    for message_id, template in rule.messages.items():
        md += f"- `{message_id}`: {template}\n"
    md += "\n"

    md += "### Non-Compliant\n```js\n" + rule.non_compliant.rstrip() + "\n```\n\n"
    md += "### Compliant\n```js\n" + rule.compliant.rstrip() + "\n```\n"

    if rule.notes:
        md += "\n### Notes\n"
        for note in rule.notes:
            md += f"- {note}\n"
    return md

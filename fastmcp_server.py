"""
Math.trunc Lint Agent — MCP Server

Exposes the prefer-math-trunc linter to editor agents via the Model Context
Protocol:

  1. set_workspace — point the agent at a workspace root
  2. configure     — severity, fix-pass limit, getter handling
  3. lint_file     — list diagnostics for a file (shows fix status)
  4. explain_rule  — rule description, messages and examples
  5. propose_fix   — the fix or suggestion for one diagnostic, with preview
  6. apply_fix     — apply one fix (or an accepted suggestion) + mark status
  7. verify_fix    — re-lint to confirm the diagnostic is gone
  8. fix_all       — apply every guaranteed fix in a file, multi-pass
"""

from mcp.server.fastmcp import FastMCP
import os
import sys
import json
import logging

# Ensure the trunclint package is importable when run as a script
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from trunclint.batch_fixer import BatchFixer
from trunclint.config import LintConfig
from trunclint.context_provider import ContextProvider
from trunclint.edits import Edit
from trunclint.js_analyzer import first_error, operand, parse_source, read_source
from trunclint.linter import Linter
from trunclint.rule_catalog import format_rule_explanation
from trunclint.side_effects import describe_side_effect

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("Math.trunc Lint Agent")

# Optional per-workspace settings, read by set_workspace
CONFIG_FILE = ".trunclintrc.json"

config = LintConfig()
linter = Linter(config)
context_provider = None
batch_fixer = BatchFixer()

# ── Diagnostic status tracking ──
# Key:   (normalized_file_path, line_number, message_id)
# Value: "pending" | "fixed" | "verified" | "failed"
_violation_status = {}


def _vkey(file_path: str, line: int, message_id: str) -> tuple:
    """Canonical key for the status map."""
    return (file_path.replace("\\", "/"), line, message_id)


def _get_status(file_path: str, line: int, message_id: str) -> str:
    return _violation_status.get(_vkey(file_path, line, message_id), "pending")


def _set_status(file_path: str, line: int, message_id: str, status: str):
    _violation_status[_vkey(file_path, line, message_id)] = status


def _not_initialised() -> str:
    return "Error: Not initialised. Call set_workspace first."


# ═══════════════════════════════════════════════════════════════════════
#  Diagnostic Lookup Helper
# ═══════════════════════════════════════════════════════════════════════

def _find_message(file_path: str, line_number: int):
    """Lint ``file_path`` and find the diagnostic on ``line_number``.

    Returns (message, hint).  ``message`` is None when nothing matches;
    ``hint`` explains any fallback (closest line) or why nothing was found.
    """
    norm_path = file_path.replace("\\", "/")
    result = linter.lint_file(context_provider.resolve(file_path))
    messages = [m for m in result.messages if not m.fatal]

    if result.fatal:
        fatal = next(m for m in result.messages if m.fatal)
        return None, f"`{norm_path}` does not parse: {fatal.message} (line {fatal.line})."

    exact = [m for m in messages if m.line == line_number]
    if exact:
        return exact[0], None

    if messages:
        closest = min(messages, key=lambda m: abs(m.line - line_number))
        lines_str = ", ".join(str(ln) for ln in sorted({m.line for m in messages})[:10])
        hint = (
            f"No diagnostic at line {line_number} in `{norm_path}`, "
            f"but found {len(messages)} at line(s): {lines_str}.\n"
            f"**Closest match:** line {closest.line} — using that instead."
        )
        return closest, hint

    return None, f"No diagnostics found in `{norm_path}`."


def _fix_edit(message, accept_suggestion: bool):
    """The edit to apply for ``message``: its fix, or its first suggestion."""
    if message.fix is not None:
        return Edit(message.fix.start_byte, message.fix.end_byte, message.fix.text)
    if accept_suggestion and message.suggestions:
        fix = message.suggestions[0].fix
        return Edit(fix.start_byte, fix.end_byte, fix.text)
    return None


def _side_effect_source(file_path: str, message) -> str:
    """Text of the sub-expression that makes the assignment target effectful."""
    source = read_source(context_provider.resolve(file_path))
    if source is None:
        return ""
    root = parse_source(source).root_node
    node = root.descendant_for_byte_range(message.start_byte, message.end_byte)
    while node is not None and not (
        node.type == "augmented_assignment_expression"
        and node.start_byte == message.start_byte
        and node.end_byte == message.end_byte
    ):
        node = node.parent
    if node is None:
        return ""
    target = operand(node, "left")
    if target is None:
        return ""
    return describe_side_effect(target, source, config.consider_getters)


def _no_fix_reason(file_path: str, message) -> str:
    if message.suggestions:
        return ("This diagnostic only carries a suggestion "
                f"(\"{message.suggestions[0].desc}\"). "
                "Call `apply_fix` with `accept_suggestion=True` to apply it.")
    culprit = _side_effect_source(file_path, message)
    detail = f" (`{culprit}`)" if culprit else ""
    return (f"No fix is offered: the assignment target has side effects{detail}, so "
            "restating it in `Math.trunc(...)` would evaluate it twice.")


def _load_workspace_config(workspace_root: str):
    """LintConfig from ``CONFIG_FILE`` in the workspace root, or None."""
    path = os.path.join(workspace_root, CONFIG_FILE)
    if not os.path.isfile(path):
        return None
    with open(path, encoding="utf-8") as f:
        return LintConfig.from_dict(json.load(f))


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Set Workspace
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def set_workspace(workspace_root: str) -> str:
    """
    Sets the workspace root that relative file paths are resolved against.
    A ``.trunclintrc.json`` in the root (camelCase or snake_case keys)
    replaces the current configuration.

    Args:
        workspace_root: Root directory of the JavaScript workspace.
    """
    global config, linter, context_provider, _violation_status

    if not os.path.isdir(workspace_root):
        return f"Error: Workspace root not found at {workspace_root}"

    try:
        loaded = _load_workspace_config(workspace_root)
    except (OSError, ValueError, TypeError) as e:
        return f"Error: Invalid {CONFIG_FILE}: {e}"
    if loaded is not None:
        config = loaded
        linter = Linter(config)
        logger.info("Loaded %s from %s", CONFIG_FILE, workspace_root)

    _violation_status = {}  # reset on new workspace
    context_provider = ContextProvider(workspace_root, max_lines=config.max_lines)

    count = 0
    for _dirpath, dirnames, filenames in os.walk(workspace_root):
        dirnames[:] = [d for d in dirnames if d not in ("node_modules", ".git")]
        count += sum(1 for fn in filenames if config.handles(fn))

    logger.info("Workspace set to %s (%d source files)", workspace_root, count)
    md = (f"Workspace set to `{workspace_root}`.\n"
          f"Found {count} JavaScript file(s) "
          f"({', '.join(config.extensions)}).")
    if loaded is not None:
        md += (f"\nLoaded `{CONFIG_FILE}`: severity=`{config.severity}`, "
               f"max_fix_passes={config.max_fix_passes}, "
               f"consider_getters={config.consider_getters}.")
    return md


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — Configure
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def configure(severity: str = "error", max_fix_passes: int = 10,
              consider_getters: bool = False) -> str:
    """
    Reconfigures the linter.

    Args:
        severity:         "error", "warn" or "off".
        max_fix_passes:   Upper bound on fix → re-lint passes in fix_all.
        consider_getters: Treat property reads in assignment targets as
                          side effects (suppresses more fixes).
    """
    global config, linter

    try:
        new_config = LintConfig(
            severity=severity,
            max_fix_passes=max_fix_passes,
            consider_getters=consider_getters,
        )
    except ValueError as e:
        return f"Error: {e}"

    config = new_config
    linter = Linter(config)
    if context_provider is not None:
        context_provider.max_lines = config.max_lines
    return (f"Configuration updated: severity=`{config.severity}`, "
            f"max_fix_passes={config.max_fix_passes}, "
            f"consider_getters={config.consider_getters}.")


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — Lint File
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def lint_file(file_path: str) -> str:
    """
    Lists every prefer-math-trunc diagnostic in a file with its fix kind
    (fix / suggestion / none) and status.

    Args:
        file_path: Path relative to the workspace root.
    """
    if context_provider is None:
        return _not_initialised()

    full = context_provider.resolve(file_path)
    if not os.path.isfile(full):
        return f"Error: File not found: {file_path}"

    result = linter.lint_file(full)
    if result.fatal:
        fatal = result.messages[0]
        return f"**{file_path}** — {fatal.message} at line {fatal.line}, column {fatal.column}."
    if not result.messages:
        return f"No diagnostics in `{file_path}`."

    md = f"## Diagnostics — `{file_path}`\n\n"
    md += (f"{len(result.messages)} problem(s): {result.error_count} error(s), "
           f"{result.warning_count} warning(s), {result.fixable_count} auto-fixable.\n\n")
    md += "| Line | Col | Severity | Message | Fix | Status |\n"
    md += "|------|-----|----------|---------|-----|--------|\n"
    for m in result.messages:
        status = _get_status(file_path, m.line, m.message_id)
        md += (f"| {m.line} | {m.column} | {m.severity} | {m.message} | "
               f"{m.fix_kind} | {status} |\n")
    return md


# ═══════════════════════════════════════════════════════════════════════
#  Tool 4 — Explain Rule
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def explain_rule(rule_id: str = "prefer-math-trunc") -> str:
    """
    Returns the rule description, message catalog and examples.

    Args:
        rule_id: The rule ID (only "prefer-math-trunc" is shipped).
    """
    return format_rule_explanation(rule_id)


# ═══════════════════════════════════════════════════════════════════════
#  Tool 5 — Propose Fix
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def propose_fix(file_path: str, line_number: int) -> str:
    """
    Shows the diagnostic at a line together with its fix or suggestion and
    a preview of the rewritten line.

    Args:
        file_path:   Path relative to the workspace root.
        line_number: 1-based line of the diagnostic.
    """
    if context_provider is None:
        return _not_initialised()

    message, hint = _find_message(file_path, line_number)
    if message is None:
        return hint

    md = f"> **Note:** {hint}\n\n" if hint else ""
    md += f"### {message.rule_id} — line {message.line}\n"
    md += f"**Message**: {message.message}\n\n"
    md += "#### Context\n```js\n"
    md += context_provider.get_code_context(file_path, message.line, context_lines=3,
                                            numbered=True).rstrip("\n")
    md += "\n```\n\n"

    edit = _fix_edit(message, accept_suggestion=True)
    if edit is None:
        md += "#### No Fix\n" + _no_fix_reason(file_path, message) + "\n"
        return md

    if message.fix is not None:
        md += "#### Fix (Auto-Apply Available)\n"
    else:
        md += f"#### Suggestion — {message.suggestions[0].desc}\n"
        md += "_Not applied automatically; pass `accept_suggestion=True` to `apply_fix`._\n"
    md += f"- Replace bytes {edit.start_byte}–{edit.end_byte} with `{edit.text}`\n\n"

    source = read_source(context_provider.resolve(file_path)) or b""
    fixed, _ = batch_fixer.apply_to_bytes(source, [edit], file_path)
    preview = fixed.decode("utf-8", errors="replace").splitlines()
    if 1 <= message.line <= len(preview):
        md += "#### Preview\n```js\n" + preview[message.line - 1] + "\n```\n"
    return md


# ═══════════════════════════════════════════════════════════════════════
#  Tool 6 — Apply Fix
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def apply_fix(file_path: str, line_number: int, accept_suggestion: bool = False) -> str:
    """
    Applies the fix for the diagnostic at a line.

    Suggestions (``x | 0``) are only applied with ``accept_suggestion=True``.
    The result is re-parsed; if it no longer parses the file is left
    untouched.

    Args:
        file_path:         Path relative to the workspace root.
        line_number:       1-based line of the diagnostic.
        accept_suggestion: Apply the first suggestion when there is no
                           guaranteed fix.
    """
    if context_provider is None:
        return _not_initialised()

    message, hint = _find_message(file_path, line_number)
    if message is None:
        return hint

    prefix = f"> **Note:** {hint}\n\n" if hint else ""
    edit = _fix_edit(message, accept_suggestion)
    if edit is None:
        return f"{prefix}Auto-fix not available.\n\n**Reason:** {_no_fix_reason(file_path, message)}"

    try:
        abs_path = context_provider.resolve(file_path)
        with open(abs_path, "rb") as f:
            original = f.read()

        content, applied = batch_fixer.apply_to_bytes(original, [edit], file_path)
        if applied == 0:
            return "Error: The edit was skipped (out of bounds or overlapping)."

        # ── Verify: re-parse to check the result is still valid JS ──
        error = first_error(parse_source(content).root_node)
        if error is not None:
            return ("Error: Fix produced invalid JavaScript (parse errors detected). "
                    "The file was not modified.")

        with open(abs_path, "wb") as f:
            f.write(content)
    except OSError as e:
        return f"Error applying fix: {e}"

    _set_status(file_path, message.line, message.message_id, "fixed")
    kind = "suggestion" if message.fix is None else "fix"
    return (f"{prefix}Successfully applied the {kind} for line {message.line} "
            f"in `{file_path}`: `{edit.text}`.\n\n"
            "**Status:** marked as `fixed`. "
            "Run `verify_fix` to confirm the diagnostic is resolved.")


# ═══════════════════════════════════════════════════════════════════════
#  Tool 7 — Verify Fix
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def verify_fix(file_path: str, line_number: int) -> str:
    """
    Re-lints the file and checks whether any diagnostic remains on the line.

    Args:
        file_path:   Path relative to the workspace root.
        line_number: 1-based line that was fixed.
    """
    if context_provider is None:
        return _not_initialised()

    result = linter.lint_file(context_provider.resolve(file_path))
    if result.fatal:
        return f"**FAILED** — `{file_path}` no longer parses: {result.messages[0].message}"

    remaining = [m for m in result.messages if m.line == line_number]
    fixed_keys = [k for k, v in _violation_status.items()
                  if k[0] == file_path.replace("\\", "/") and k[1] == line_number and v == "fixed"]

    if not remaining:
        for key in fixed_keys:
            _violation_status[key] = "verified"
        return f"**VERIFIED** — no diagnostics remain at `{file_path}:{line_number}`."

    for key in fixed_keys:
        _violation_status[key] = "failed"
    details = "\n".join(f"- col {m.column}: {m.message}" for m in remaining)
    return (f"**STILL PRESENT** — `{file_path}:{line_number}` still has "
            f"{len(remaining)} diagnostic(s):\n{details}\n\n"
            "Nested idioms (e.g. `~~~~x`) may need another pass; try `fix_all`.")


# ═══════════════════════════════════════════════════════════════════════
#  Tool 8 — Fix All (multi-pass)
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def fix_all(file_path: str, dry_run: bool = False) -> str:
    """
    Applies every guaranteed fix in a file, re-linting between passes, and
    lists what is left (suggestions and fix-less diagnostics).

    Args:
        file_path: Path relative to the workspace root.
        dry_run:   If True, report but do not write changes.
    """
    if context_provider is None:
        return _not_initialised()

    full = context_provider.resolve(file_path)
    if not os.path.isfile(full):
        return f"Error: File not found: {file_path}"

    before = linter.lint_file(full)
    if before.fatal:
        return f"Error: `{file_path}` does not parse: {before.messages[0].message}"

    result = linter.fix_file(full, dry_run=dry_run)

    summary = f"## Fix All — `{file_path}`\n\n"
    summary += "| Metric | Count |\n|--------|-------|\n"
    summary += f"| Diagnostics before | {len(before.messages)} |\n"
    if dry_run:
        summary += f"| Would fix | {result.applied} |\n"
    else:
        summary += f"| Fixes applied | {result.applied} |\n"
    summary += f"| Passes | {result.passes} |\n"
    summary += f"| Remaining | {len(result.messages)} |\n"

    if not dry_run:
        for m in before.messages:
            if m.fix is not None:
                _set_status(file_path, m.line, m.message_id, "fixed")

    if result.messages:
        summary += "\n### Remaining\n\n"
        summary += "| Line | Message | Fix |\n|------|---------|-----|\n"
        for m in result.messages:
            summary += f"| {m.line} | {m.message} | {m.fix_kind} |\n"

    return summary


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    mcp.run()

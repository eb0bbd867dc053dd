"""
Context Provider

Serves workspace-relative source windows around a diagnostic line for the
MCP tools.  Files go through the same reader as the linter (missing and
binary files yield nothing), and at most ``max_lines`` lines are served.
"""

import os
import re
import logging
from typing import List, Optional

from .js_analyzer import read_source

logger = logging.getLogger(__name__)

MAX_LINES = 100_000

# Lines end at "\n" only, matching the line numbers the linter reports
_LINE = re.compile(r"[^\n]*\n|[^\n]+\Z")


class ContextProvider:
    def __init__(self, workspace_root: str, max_lines: int = MAX_LINES):
        self.workspace_root = workspace_root
        self.max_lines = max_lines

    def resolve(self, file_path: str) -> str:
        # 'src/app.js' and 'src\\app.js' both resolve on any platform
        native = file_path.replace("/", os.sep).replace("\\", os.sep)
        return os.path.join(self.workspace_root, native)

    def _lines(self, file_path: str) -> Optional[List[str]]:
        source = read_source(self.resolve(file_path))
        if source is None:
            return None
        lines = _LINE.findall(source.decode("utf-8", errors="replace"))
        if len(lines) > self.max_lines:
            logger.warning("%s has %d lines; serving the first %d",
                           file_path, len(lines), self.max_lines)
            del lines[self.max_lines:]
        return lines

    def get_code_context(self, file_path: str, line_number: int,
                         context_lines: int = 5, numbered: bool = False) -> str:
        """Lines ``line_number ± context_lines`` of a file (1-based).

        With ``numbered`` each line is prefixed with its number and the
        target line is marked with ``>``.
        """
        lines = self._lines(file_path)
        if lines is None:
            return f"Error: Cannot read {file_path}"

        first = max(1, line_number - context_lines)
        last = min(len(lines), line_number + context_lines)
        window = lines[first - 1:last]
        if not numbered:
            return "".join(window)

        width = len(str(last))
        out = []
        for number, text in enumerate(window, start=first):
            marker = ">" if number == line_number else " "
            body = text.rstrip("\r\n")
            out.append(f"{marker} {number:>{width}} | {body}\n")
        return "".join(out)

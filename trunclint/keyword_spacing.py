"""
Keyword-adjacency whitespace fixes.

Replacing ``~~x`` in ``return~~x`` with ``Math.trunc(x)`` would produce
``returnMath.trunc(x)``.  These helpers emit the extra single-space
insertions needed to keep a keyword token separate from the replacement.
"""

from typing import Iterator

from tree_sitter import Node

from .edits import Edit, insert_text_after, insert_text_before
from .js_analyzer import is_keyword_token, next_token, outermost_parentheses, previous_token


def fix_space_around_keyword(node: Node) -> Iterator[Edit]:
    outer = outermost_parentheses(node)

    before = previous_token(outer)
    if before is not None and before.end_byte == outer.start_byte and is_keyword_token(before):
        yield insert_text_after(before, " ")

    after = next_token(outer)
    if after is not None and after.start_byte == outer.end_byte and is_keyword_token(after):
        yield insert_text_before(after, " ")

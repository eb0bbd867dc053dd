import os
import logging
from typing import Dict, List, Union

from .edits import Edit

logger = logging.getLogger(__name__)

EditLike = Union[Edit, Dict]


def _as_edit(edit: EditLike) -> Edit:
    if isinstance(edit, Edit):
        return edit
    return Edit(edit["start_byte"], edit["end_byte"], edit["text"])


class BatchFixer:
    """
    Applies multiple text edits to files safely.
    Handles offset shifts by applying edits in reverse order (bottom-up).
    """

    def apply_fixes_by_file(self, file_map: Dict[str, List[EditLike]],
                            dry_run: bool = False) -> Dict[str, int]:
        """
        file_map: { file_path: [Edit or {start_byte, end_byte, text}, ...] }
        Returns {file_path: number_of_edits_applied}.
        """
        summary = {}

        for file_path, edits in file_map.items():
            if not edits:
                continue

            try:
                applied = self._apply_to_file(file_path, [_as_edit(e) for e in edits], dry_run)
                summary[file_path] = applied
            except (OSError, ValueError) as e:
                logger.error("Failed to apply fixes to %s: %s", file_path, e)
                summary[file_path] = 0

        return summary

    def apply_to_bytes(self, content: bytes, edits: List[Edit], label: str = "<bytes>"):
        """Apply ``edits`` to ``content``; returns (new_content, applied_count).

        Edits that overlap one already applied, or fall outside the content,
        are skipped with a warning.
        """
        # Descending start; at equal starts the wider span goes first so an
        # insertion at the same offset still lands in front of it
        sorted_edits = sorted(edits, key=lambda e: (e.start_byte, e.end_byte), reverse=True)

        new_content = bytearray(content)
        last_start = float("inf")
        applied = 0

        for edit in sorted_edits:
            start, end = edit.start_byte, edit.end_byte
            if end > len(content):
                logger.warning("Edit %d-%d out of bounds in %s. Skipping edit.", start, end, label)
                continue
            if end > last_start:
                logger.warning("Overlap detected in %s at offset %d-%d. Skipping edit.", label, start, end)
                continue

            new_content[start:end] = edit.text.encode("utf-8")
            last_start = start
            applied += 1

        return bytes(new_content), applied

    def _apply_to_file(self, file_path: str, edits: List[Edit], dry_run: bool) -> int:
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"File not found: {file_path}")

        with open(file_path, "rb") as f:
            content = f.read()

        new_content, applied = self.apply_to_bytes(content, edits, file_path)

        if not dry_run:
            with open(file_path, "wb") as f:
                f.write(new_content)
            logger.info("Applied %d fixes to %s", applied, file_path)
        else:
            logger.info("[Dry Run] Would apply %d fixes to %s", applied, file_path)
        return applied

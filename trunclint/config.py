"""
Lint configuration.

A small flat settings object.  Keys may be given in snake_case or the
camelCase spelling used by eslint-style configs (``maxFixPasses``,
``considerGetters``).
"""

import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Tuple

from .reporter import SEVERITY_LEVELS

DEFAULT_EXTENSIONS = (".js", ".mjs", ".cjs", ".jsx")


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass
class LintConfig:
    severity: str = "error"            # "error" | "warn" | "off"
    max_fix_passes: int = 10
    consider_getters: bool = False
    extensions: Tuple[str, ...] = field(default=DEFAULT_EXTENSIONS)
    max_lines: int = 100_000           # context provider cap

    def __post_init__(self):
        if self.severity not in SEVERITY_LEVELS:
            raise ValueError(
                f"Invalid severity '{self.severity}'. "
                f"Expected one of: {', '.join(SEVERITY_LEVELS)}"
            )
        if self.max_fix_passes < 1:
            raise ValueError("max_fix_passes must be at least 1")
        self.extensions = tuple(self.extensions)

    @property
    def enabled(self) -> bool:
        return SEVERITY_LEVELS[self.severity] is not None

    @property
    def reported_severity(self) -> str:
        return SEVERITY_LEVELS[self.severity] or "off"

    def handles(self, file_path: str) -> bool:
        return file_path.lower().endswith(self.extensions)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LintConfig":
        if not isinstance(data, dict):
            raise ValueError("Config must be a JSON object")
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _snake(key)
            if name not in known:
                raise ValueError(f"Unknown config key '{key}'")
            kwargs[name] = value
        return cls(**kwargs)

"""
wild_rootcause/config.py
════════════════════════

Report settings.

Values come from three layers, later ones winning:

    1. dataclass defaults
    2. environment variables (:meth:`ReportConfig.from_env`)
    3. command-line flags (applied by :mod:`wild_rootcause.cli`)

Environment variables
─────────────────────
    WILDRC_BASE_DIRS       project directories, ``os.pathsep`` separated
    WILDRC_GENERATED       generated-file globs, ``os.pathsep`` separated
    WILDRC_FORMAT          ``json`` | ``text`` | ``html``
    WILDRC_HTML_TEMPLATE   path of a Jinja2 template for HTML output
    WILDRC_NO_COLOR        any non-empty value disables colour
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from .errors import ConfigError
from .locations import DEFAULT_SYSTEM_PREFIXES, FileClassifier


OUTPUT_FORMATS = ("json", "text", "html")


def _split_paths(raw: str) -> Tuple[str, ...]:
    return tuple(p for p in raw.split(os.pathsep) if p)


@dataclass
class ReportConfig:
    """Tuning knobs for classification and rendering."""
    base_dirs: Tuple[str, ...] = ()
    system_prefixes: Tuple[str, ...] = DEFAULT_SYSTEM_PREFIXES
    generated_globs: Tuple[str, ...] = ()
    output_format: str = "json"
    colour: Optional[bool] = None
    html_template: Optional[str] = None
    macro_out: Optional[str] = None
    strict: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ReportConfig:
        env = os.environ if environ is None else environ
        cfg = cls()
        if env.get("WILDRC_BASE_DIRS"):
            cfg.base_dirs = _split_paths(env["WILDRC_BASE_DIRS"])
        if env.get("WILDRC_GENERATED"):
            cfg.generated_globs = _split_paths(env["WILDRC_GENERATED"])
        if env.get("WILDRC_FORMAT"):
            cfg.output_format = env["WILDRC_FORMAT"].strip().lower()
        if env.get("WILDRC_HTML_TEMPLATE"):
            cfg.html_template = env["WILDRC_HTML_TEMPLATE"]
        if env.get("WILDRC_NO_COLOR"):
            cfg.colour = False
        return cfg

    def validate(self) -> List[str]:
        """Raise on unusable values; return warnings for suspicious ones."""
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"unknown output format {self.output_format!r} "
                f"(expected one of {', '.join(OUTPUT_FORMATS)})"
            )
        warnings: List[str] = []
        for d in self.base_dirs:
            if not os.path.isdir(d):
                warnings.append(f"base directory does not exist: {d}")
        if not self.base_dirs:
            warnings.append("no base directory given; every non-system file counts as in-source")
        if self.html_template and not os.path.isfile(self.html_template):
            warnings.append(f"HTML template not found: {self.html_template}")
        return warnings

    def classifier(self) -> FileClassifier:
        return FileClassifier(
            base_dirs=self.base_dirs,
            system_prefixes=self.system_prefixes,
            generated_globs=self.generated_globs,
        )


__all__ = ["OUTPUT_FORMATS", "ReportConfig"]

"""
wild_rootcause/render.py
════════════════════════

Renderers for the structured summary, root-cause report and RC map.

Output formats
──────────────
  • JSON     : the ``WildPtrInfo`` / ``RootCauseStats`` / ``RCMap`` objects
  • Terminal : coloured tables via ``termcolor`` (plain text when not a TTY)
  • HTML     : a single page rendered with ``jinja2``

Renderers only read the report objects; the numbers themselves are
computed in :mod:`wild_rootcause.summary` and :mod:`wild_rootcause.report`.
"""

from __future__ import annotations

import json
import os
import sys
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO, Union

import jinja2
from termcolor import colored

from .locations import SourceLocation, location_json
from .report import RCMapEntry, RootCauseReport, rc_map_dict
from .summary import WildPointerSummary


# ═════════════════════════════════════════════════════════════════════════
#  JSON
# ═════════════════════════════════════════════════════════════════════════

def render_json(
    summary: Optional[WildPointerSummary] = None,
    report: Optional[RootCauseReport] = None,
    rc_map: Optional[Sequence[RCMapEntry]] = None,
    indent: Optional[int] = 2,
) -> str:
    """
    Serialise whichever parts are given.

    A single part is emitted as its own object; several parts are emitted
    as a JSON array in summary, report, RC-map order.
    """
    parts: List[Dict[str, Any]] = []
    if summary is not None:
        parts.append(summary.to_dict())
    if report is not None:
        parts.append(report.to_dict())
    if rc_map is not None:
        parts.append(rc_map_dict(list(rc_map)))
    payload: Any = parts[0] if len(parts) == 1 else parts
    return json.dumps(payload, indent=indent)


def macro_warning(locations: Sequence[SourceLocation]) -> str:
    n = len(locations)
    return (
        f"{n} macro expansion{'s' if n != 1 else ''} "
        f"{'are' if n != 1 else 'is'} hiding root causes that textual "
        f"inspection will not reveal"
    )


# ═════════════════════════════════════════════════════════════════════════
#  TEXT RENDERERS
# ═════════════════════════════════════════════════════════════════════════

class _PlainRenderer:
    """Uncoloured renderer for log files and pipes."""

    def __init__(self, stream: TextIO = sys.stdout) -> None:
        self._stream = stream

    # Overridden by the terminal renderer.
    def _style(self, text: str, color: Optional[str] = None,
               attrs: Optional[List[str]] = None) -> str:
        return text

    def _write(self, lines: List[str]) -> None:
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()

    def render_summary(self, summary: WildPointerSummary) -> None:
        s = self._style
        lines = [
            s("WILD pointer summary", "white", ["bold"]),
            f"  root causes      : {summary.root_count} "
            f"({summary.in_source_root_count} in source)",
            f"  indirect atoms   : {summary.indirect_count} "
            f"({summary.in_source_indirect_count} in source)",
            "",
            f"  {'reason':<24} {'roots':>7} {'in src':>7} "
            f"{'indirect':>9} {'in src':>7} {'score':>9}",
        ]
        for b in summary.buckets:
            lines.append(
                f"  {s(f'{b.reason:<24}', 'cyan')} {b.count:>7} {b.in_source_count:>7} "
                f"{b.total_indirect_count:>9} {b.in_source_indirect_count:>7} "
                f"{s(f'{b.in_source_score:>9.2f}', 'yellow', ['bold'])}"
            )
        self._write(lines)

    def render_report(self, report: RootCauseReport, limit: Optional[int] = None) -> None:
        s = self._style
        entries = sorted(report.entries, key=lambda e: (-e.atoms_score, e.atom))
        if limit is not None:
            entries = entries[:limit]
        lines = [s(f"Root causes ({len(report)} total)", "white", ["bold"])]
        for e in entries:
            where = location_json(e.location) or "<no location>"
            tag = "" if e.in_source else s(" [not in source]", attrs=["dark"])
            lines.append(
                f"{s(e.reason, 'red', ['bold'])} {e.name} (#{e.atom}){tag}"
            )
            lines.append(f"  {s('-->', 'blue', ['bold'])} {where}")
            lines.append(
                f"  affects {e.atoms_affected} atoms (score {e.atoms_score:.2f}), "
                f"{e.pointers_affected} pointers (score {e.pointers_score:.2f})"
            )
            for sub in e.sub_reasons:
                sub_where = location_json(sub.location)
                suffix = f" [{sub_where}]" if sub_where else ""
                lines.append(f"  = {s('note', 'cyan', ['bold'])}: {sub.reason}{suffix}")
        if report.macro_locations:
            lines.append("")
            lines.append(s(f"warning: {macro_warning(report.macro_locations)}",
                           "yellow", ["bold"]))
            for loc in report.macro_locations:
                lines.append(f"  {s('-->', 'blue', ['bold'])} {loc}")
        self._write(lines)

    def render_rc_map(self, entries: Sequence[RCMapEntry]) -> None:
        s = self._style
        lines = [s(f"RC map ({len(entries)} explained atoms)", "white", ["bold"])]
        for e in entries:
            where = location_json(e.location) or "<no location>"
            causes = ", ".join(e.causes) if e.causes else "-"
            lines.append(f"  {e.name} (#{e.atom}) {s(where, 'blue')} <- {causes}")
        self._write(lines)


class _TerminalRenderer(_PlainRenderer):
    """Coloured renderer for interactive terminals."""

    def _style(self, text: str, color: Optional[str] = None,
               attrs: Optional[List[str]] = None) -> str:
        return colored(text, color, attrs=attrs)


TextRenderer = Union[_PlainRenderer, _TerminalRenderer]


def make_text_renderer(stream: TextIO = sys.stdout, colour: Optional[bool] = None) -> TextRenderer:
    """Pick the terminal renderer for TTYs (or when forced), plain otherwise."""
    use_colour = colour if colour is not None else hasattr(stream, "isatty") and stream.isatty()
    if use_colour:
        return _TerminalRenderer(stream)
    return _PlainRenderer(stream)


# ═════════════════════════════════════════════════════════════════════════
#  HTML
# ═════════════════════════════════════════════════════════════════════════

class HtmlRenderer:
    """Renders the full picture to one HTML page via Jinja2."""

    def __init__(self, template_path: Optional[str] = None) -> None:
        self._template_path = template_path

    def _load_template(self) -> str:
        # 1. explicit argument, 2. $WILDRC_HTML_TEMPLATE, 3. built-in
        if self._template_path:
            return Path(self._template_path).read_text(encoding="utf-8")
        env_tmpl = os.environ.get("WILDRC_HTML_TEMPLATE", "")
        if env_tmpl and Path(env_tmpl).is_file():
            return Path(env_tmpl).read_text(encoding="utf-8")
        return _DEFAULT_HTML_TEMPLATE

    def render(
        self,
        summary: Optional[WildPointerSummary] = None,
        report: Optional[RootCauseReport] = None,
        rc_map: Optional[Sequence[RCMapEntry]] = None,
    ) -> str:
        env = jinja2.Environment(autoescape=True)
        tmpl = env.from_string(self._load_template())
        return tmpl.render(
            summary=summary.to_dict()["WildPtrInfo"] if summary else None,
            buckets=list(summary.buckets) if summary else [],
            roots=[e.to_dict() for e in report.entries] if report else [],
            macro_locations=[str(l) for l in report.macro_locations] if report else [],
            macro_warning=macro_warning(report.macro_locations) if report else "",
            rc_map=[e.to_dict() for e in rc_map] if rc_map is not None else [],
        )

    def write(self, path: Union[str, Path], **parts: Any) -> None:
        Path(path).write_text(self.render(**parts), encoding="utf-8")


_DEFAULT_HTML_TEMPLATE = textwrap.dedent("""\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>WILD Pointer Root Causes</title>
  <style>
    :root { --bg: #1e1e2e; --fg: #cdd6f4; --surface: #313244;
            --red: #f38ba8; --yellow: #f9e2af; --cyan: #89dceb;
            --blue: #89b4fa; --border: #45475a; }
    body { font-family: 'Fira Code', monospace; background: var(--bg);
           color: var(--fg); padding: 2rem; }
    table { border-collapse: collapse; margin-bottom: 2rem; }
    th, td { border: 1px solid var(--border); padding: 4px 10px; }
    th { background: var(--surface); }
    .reason { color: var(--cyan); }
    .score { color: var(--yellow); text-align: right; }
    .loc { color: var(--blue); }
    .note { color: var(--cyan); font-size: 0.9em; }
    .warn { color: var(--yellow); font-weight: bold; }
  </style>
</head>
<body>
  {% if summary %}
  <h1>WILD pointer summary</h1>
  <p>{{ summary.DirectWildPtrs.Num }} root causes ({{ summary.DirectWildPtrs.InSrcNum }} in source),
     {{ summary.InDirectWildPtrNum }} indirect atoms ({{ summary.InSrcInDirectWildPtrNum }} in source).</p>
  <table>
    <tr><th>Reason</th><th>Roots</th><th>In source</th><th>Indirect</th><th>In-source indirect</th><th>Score</th></tr>
    {% for b in buckets %}
    <tr><td class="reason">{{ b.reason }}</td><td>{{ b.count }}</td><td>{{ b.in_source_count }}</td>
        <td>{{ b.total_indirect_count }}</td><td>{{ b.in_source_indirect_count }}</td>
        <td class="score">{{ "%.2f"|format(b.in_source_score) }}</td></tr>
    {% endfor %}
  </table>
  {% endif %}
  {% if roots %}
  <h1>Root causes</h1>
  <table>
    <tr><th>Key</th><th>Name</th><th>Reason</th><th>Location</th><th>Atoms</th><th>Atom score</th><th>Pointers</th><th>Pointer score</th></tr>
    {% for r in roots %}
    <tr><td>{{ r.ConstraintKey }}</td><td>{{ r.Name }}</td><td class="reason">{{ r.Reason }}</td>
        <td class="loc">{{ r.Location or "" }}</td><td>{{ r.AtomsAffected }}</td>
        <td class="score">{{ "%.2f"|format(r.AtomsScore) }}</td><td>{{ r.PtrsAffected }}</td>
        <td class="score">{{ "%.2f"|format(r.PtrsScore) }}</td></tr>
    {% for n in r.SubReasons %}
    <tr><td></td><td colspan="7" class="note">note: {{ n.Rsn }}{% if n.Location %} ({{ n.Location }}){% endif %}</td></tr>
    {% endfor %}
    {% endfor %}
  </table>
  {% endif %}
  {% if macro_locations %}
  <p class="warn">{{ macro_warning }}</p>
  <ul>{% for l in macro_locations %}<li class="loc">{{ l }}</li>{% endfor %}</ul>
  {% endif %}
  {% if rc_map %}
  <h1>RC map</h1>
  <table>
    <tr><th>Key</th><th>Name</th><th>Location</th><th>Explained by</th></tr>
    {% for e in rc_map %}
    <tr><td>{{ e.Key }}</td><td>{{ e.Name }}</td><td class="loc">{{ e.Location or "" }}</td>
        <td>{{ e.Reasons|join(", ") }}</td></tr>
    {% endfor %}
  </table>
  {% endif %}
</body>
</html>
""")


__all__ = [
    "render_json",
    "macro_warning",
    "make_text_renderer",
    "HtmlRenderer",
]

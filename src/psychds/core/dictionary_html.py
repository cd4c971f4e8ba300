"""
Human-readable HTML data dictionary.

Renders a standalone, print-ready HTML page describing every variable of a
dataset. Users print it to PDF from their browser; no PDF conversion
happens here.
"""

import html
import re
from datetime import date
from pathlib import Path
from typing import Optional

from .models import DataDictionary, DatasetInfo, VariableDefinition
from ..infrastructure.logging_config import get_logger

logger = get_logger(__name__)


_CSS = """
body { font-family: -apple-system, "Segoe UI", Roboto, Helvetica, Arial, sans-serif;
       color: #212529; background: #f8f9fa; margin: 0; line-height: 1.5; }
.document-header { background: #2c3e50; color: #fff; padding: 2rem 1rem; text-align: center; }
.document-title { margin: 0; font-size: 2rem; }
.dataset-name { margin: 0.5rem 0 0; font-weight: 400; }
.generation-date { opacity: 0.8; margin: 0.5rem 0 0; }
.container { max-width: 960px; margin: 0 auto; padding: 2rem 1rem; }
.toc, .section { background: #fff; border-radius: 6px; padding: 1.5rem; margin-bottom: 1.5rem;
                 box-shadow: 0 1px 3px rgba(0, 0, 0, 0.08); }
.toc-list { columns: 2; }
.toc-number { color: #6c757d; margin-right: 0.25rem; }
.overview-grid { display: grid; grid-template-columns: repeat(4, 1fr); gap: 1rem; margin: 1rem 0; }
.stat-card { background: #f1f3f5; border-radius: 6px; padding: 1rem; text-align: center; }
.stat-value { font-size: 1.6rem; font-weight: 700; }
.stat-label { color: #6c757d; font-size: 0.85rem; }
.info-list { list-style: none; padding: 0; }
.info-label { font-weight: 600; display: inline-block; min-width: 7rem; }
.missing-value-badge { display: inline-block; background: #fff3cd; border: 1px solid #ffe69c;
                       border-radius: 4px; padding: 0.1rem 0.5rem; margin: 0.2rem; font-family: monospace; }
.variable-card { border: 1px solid #dee2e6; border-radius: 6px; margin: 1rem 0; page-break-inside: avoid; }
.variable-header { background: #f1f3f5; padding: 0.75rem 1rem; display: flex; justify-content: space-between; }
.variable-name { font-family: monospace; font-weight: 700; }
.variable-type-badge { background: #0d6efd; color: #fff; border-radius: 4px; padding: 0 0.5rem; font-size: 0.85rem; }
.variable-body { padding: 1rem; }
.badge { border-radius: 4px; padding: 0 0.5rem; margin-right: 0.25rem; font-size: 0.8rem; }
.badge-required { background: #f8d7da; color: #842029; }
.badge-unique { background: #d1e7dd; color: #0f5132; }
.property-grid { display: grid; grid-template-columns: 1fr 1fr; gap: 0.5rem; }
.property-label { color: #6c757d; font-size: 0.8rem; }
.monospace { font-family: monospace; }
.categorical-table { border-collapse: collapse; width: 100%; }
.categorical-table th, .categorical-table td { border: 1px solid #dee2e6; padding: 0.3rem 0.5rem; text-align: left; }
.document-footer { text-align: center; color: #6c757d; padding: 1rem; font-size: 0.85rem; }
@media print {
  body { background: #fff; }
  .toc, .section { box-shadow: none; }
}
"""


def escape_html(text: object) -> str:
    """Escape text for use in HTML content and attribute values."""
    if text is None:
        return ""
    return html.escape(str(text), quote=True).replace("&#x27;", "&#39;")


def make_id(text: str) -> str:
    """
    Turn a variable name into an HTML anchor id.

    Lower-cases the name, collapses runs of other characters into '-', and
    prefixes 'v-' when the result starts with a digit.
    """
    anchor = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    if anchor[:1].isdigit():
        anchor = f"v-{anchor}"
    return anchor


def _toc(dictionary: DataDictionary) -> str:
    items = ['<li><a href="#overview"><span class="toc-number">1.</span> Overview</a></li>']
    if dictionary.missing_values:
        items.append('<li><a href="#missing-values"><span class="toc-number">2.</span> Missing Values</a></li>')
    items.append('<li><a href="#variables"><span class="toc-number">3.</span> Variables</a></li>')
    for index, name in enumerate(dictionary.variables, start=1):
        items.append(
            f'<li><a href="#var-{make_id(name)}"><span class="toc-number">3.{index}</span> '
            f'{escape_html(name)}</a></li>'
        )
    return f'<nav class="toc"><h2>Contents</h2><ol class="toc-list">{"".join(items)}</ol></nav>'


def _stat_card(value: int, label: str) -> str:
    return f'<div class="stat-card"><div class="stat-value">{value}</div><div class="stat-label">{label}</div></div>'


def _overview(dictionary: DataDictionary, info: Optional[DatasetInfo]) -> str:
    variables = list(dictionary.variables.values())
    required_count = sum(1 for v in variables if v.required)
    categorical_count = sum(1 for v in variables if v.categorical_values)
    type_count = len({v.type or "unspecified" for v in variables})

    parts = ['<section class="section" id="overview"><h2>Dataset Overview</h2>']
    if info is not None and info.description.strip():
        parts.append(f'<div class="description-box"><p>{escape_html(info.description)}</p></div>')

    parts.append('<div class="overview-grid">')
    parts.append(_stat_card(len(variables), "Variables"))
    if required_count:
        parts.append(_stat_card(required_count, "Required"))
    if categorical_count:
        parts.append(_stat_card(categorical_count, "Categorical"))
    parts.append(_stat_card(type_count, "Data Types"))
    parts.append('</div>')

    if info is not None:
        parts.append('<ul class="info-list">')
        if info.name.strip():
            parts.append(f'<li><span class="info-label">Dataset</span><span>{escape_html(info.name)}</span></li>')
        if info.version:
            parts.append(f'<li><span class="info-label">Version</span><span>{escape_html(info.version)}</span></li>')
        if info.authors:
            names = ", ".join(author.full_name for author in info.authors)
            parts.append(f'<li><span class="info-label">Authors</span><span>{escape_html(names)}</span></li>')
        parts.append('</ul>')

    parts.append('</section>')
    return "".join(parts)


def _missing_values(codes: list[str]) -> str:
    badges = "".join(f'<span class="missing-value-badge">{escape_html(code)}</span>' for code in codes)
    return (
        '<section class="section" id="missing-values"><h2>Global Missing Value Codes</h2>'
        '<p>These codes represent missing values across all variables:</p>'
        f'<div class="missing-values-list">{badges}</div></section>'
    )


def _variable_card(variable: VariableDefinition) -> str:
    parts = [
        f'<article class="variable-card" id="var-{make_id(variable.name)}">',
        '<div class="variable-header">',
        f'<span class="variable-name">{escape_html(variable.name)}</span>',
        f'<span class="variable-type-badge">{escape_html(variable.type or "string")}</span>',
        '</div><div class="variable-body">',
    ]

    badges = []
    if variable.required:
        badges.append('<span class="badge badge-required">Required</span>')
    if variable.unique:
        badges.append('<span class="badge badge-unique">Unique</span>')
    if badges:
        parts.append(f'<div class="badge-container">{"".join(badges)}</div>')

    if variable.description.strip():
        parts.append(f'<p class="variable-description">{escape_html(variable.description)}</p>')

    properties = [
        ("Unit", variable.unit, False),
        ("Minimum", variable.min_value, True),
        ("Maximum", variable.max_value, True),
        ("Pattern", variable.pattern, True),
    ]
    properties = [p for p in properties if p[1]]
    if properties:
        parts.append('<div class="property-grid">')
        for label, value, mono in properties:
            css_class = "property-value monospace" if mono else "property-value"
            parts.append(
                f'<div class="property-item"><div class="property-label">{escape_html(label)}</div>'
                f'<div class="{css_class}">{escape_html(value)}</div></div>'
            )
        parts.append('</div>')

    if variable.categorical_values:
        rows = "".join(
            f'<tr><td>{escape_html(cv.value)}</td><td>{escape_html(cv.label or cv.value)}</td>'
            f'<td>{escape_html(cv.description)}</td></tr>'
            for cv in variable.categorical_values
        )
        parts.append(
            '<div class="categorical-section"><h4>Allowed Values</h4><table class="categorical-table">'
            '<thead><tr><th>Value</th><th>Label</th><th>Description</th></tr></thead>'
            f'<tbody>{rows}</tbody></table></div>'
        )

    if variable.notes.strip():
        parts.append(f'<div class="notes-section"><h4>Notes</h4><p>{escape_html(variable.notes)}</p></div>')

    parts.append('</div></article>')
    return "".join(parts)


def render_dictionary_html(
    dictionary: DataDictionary,
    info: Optional[DatasetInfo] = None,
    include_missing: bool = True,
    generated_on: Optional[date] = None,
) -> str:
    """
    Render the data dictionary as a complete HTML document.

    Args:
        dictionary: Variables and missing value codes.
        info: Dataset metadata for the header and overview.
        include_missing: Whether to list the global missing value codes.
        generated_on: Date printed in the header (today by default).

    Returns:
        The HTML document.
    """
    generated_on = generated_on or date.today()
    dataset_name = info.name.strip() if info is not None else ""
    title_suffix = f" - {escape_html(dataset_name)}" if dataset_name else ""

    missing = dictionary.missing_values if include_missing else []
    shown = DataDictionary(variables=dictionary.variables, missing_values=list(missing))

    parts = [
        '<!DOCTYPE html>\n<html lang="en">\n<head>\n<meta charset="UTF-8">\n',
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n',
        f'<title>Data Dictionary{title_suffix}</title>\n<style>{_CSS}</style>\n</head>\n<body>\n',
        '<header class="document-header"><div class="header-content">',
        '<h1 class="document-title">Data Dictionary</h1>',
    ]
    if dataset_name:
        parts.append(f'<h2 class="dataset-name">{escape_html(dataset_name)}</h2>')
    parts.append(f'<p class="generation-date">Generated on {generated_on:%B %d, %Y}</p></div></header>\n')

    parts.append('<main class="container">')
    parts.append(_toc(shown))
    parts.append(_overview(shown, info))
    if shown.missing_values:
        parts.append(_missing_values(shown.missing_values))

    if shown.variables:
        parts.append('<section class="section" id="variables"><h2>Variable Definitions</h2>')
        parts.extend(_variable_card(variable) for variable in shown.variables.values())
        parts.append('</section>')
    else:
        parts.append('<section class="section" id="variables"><h2>Variable Definitions</h2>'
                     '<p>No variables defined.</p></section>')
    parts.append('</main>\n')

    parts.append('<footer class="document-footer">Generated with psychds</footer>\n</body>\n</html>\n')
    return "".join(parts)


def html_output_path(path: Path) -> Path:
    """Force an .html extension onto an output path."""
    path = Path(path)
    if path.suffix.lower() == ".html":
        return path
    return path.with_suffix(".html")


def write_dictionary_html(
    dictionary: DataDictionary,
    output_file: Path,
    info: Optional[DatasetInfo] = None,
    include_missing: bool = True,
) -> Path:
    """
    Write the HTML data dictionary to disk.

    Args:
        dictionary: Variables and missing value codes.
        output_file: Destination; the extension is forced to .html.
        info: Dataset metadata.
        include_missing: Whether to list the global missing value codes.

    Returns:
        The path actually written.
    """
    output_file = html_output_path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(render_dictionary_html(dictionary, info, include_missing), encoding='utf-8')
    logger.info(f"HTML dictionary generated: {output_file}")
    return output_file

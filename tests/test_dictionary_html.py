"""
Tests for the HTML data dictionary.
"""

from datetime import date
from pathlib import Path

from psychds.core.dictionary_html import (
    escape_html,
    html_output_path,
    make_id,
    render_dictionary_html,
    write_dictionary_html,
)
from psychds.core.models import CategoryValue, DataDictionary, DatasetInfo, VariableDefinition


def _dictionary() -> DataDictionary:
    return DataDictionary(
        variables={
            "rt": VariableDefinition(
                name="rt", type="number", description="Reaction time",
                unit="milliseconds", min_value="200", max_value="2000", required=True,
            ),
            "condition": VariableDefinition(
                name="condition", type="categorical",
                categorical_values=[CategoryValue("c", "congruent"), CategoryValue("i", "incongruent")],
            ),
        },
        missing_values=["NA", "-999"],
    )


def test_escape_html():
    assert escape_html("<a href='x'>\"&\"</a>") == "&lt;a href=&#39;x&#39;&gt;&quot;&amp;&quot;&lt;/a&gt;"
    assert escape_html(None) == ""
    assert escape_html(42) == "42"


def test_make_id():
    assert make_id("Reaction Time (ms)") == "reaction-time-ms"
    assert make_id("2nd_trial") == "v-2nd-trial"
    assert make_id("rt") == "rt"


class TestRender:
    """Tests for render_dictionary_html."""

    def test_document_header(self):
        info = DatasetInfo(name="Stroop <Study>", description="Reaction times")

        html = render_dictionary_html(_dictionary(), info, generated_on=date(2024, 1, 5))

        assert html.startswith("<!DOCTYPE html>")
        assert "<title>Data Dictionary - Stroop &lt;Study&gt;</title>" in html
        assert "Generated on January 05, 2024" in html
        assert "Reaction times" in html
        assert "Generated with psychds" in html

    def test_variable_cards(self):
        html = render_dictionary_html(_dictionary())

        assert 'id="var-rt"' in html
        assert 'id="var-condition"' in html
        assert 'href="#var-rt"' in html
        assert "milliseconds" in html
        assert '<span class="badge badge-required">Required</span>' in html
        assert "<td>c</td><td>congruent</td>" in html

    def test_missing_values(self):
        html = render_dictionary_html(_dictionary())

        assert 'id="missing-values"' in html
        assert '<span class="missing-value-badge">-999</span>' in html

    def test_without_missing_values(self):
        """Test that the missing value section can be left out."""
        html = render_dictionary_html(_dictionary(), include_missing=False)

        assert 'id="missing-values"' not in html
        assert '<span class="missing-value-badge">' not in html

    def test_no_variables(self):
        html = render_dictionary_html(DataDictionary(missing_values=[]))
        assert "No variables defined." in html


def test_html_output_path():
    assert html_output_path(Path("report.txt")) == Path("report.html")
    assert html_output_path(Path("report")) == Path("report.html")
    assert html_output_path(Path("report.HTML")) == Path("report.HTML")


def test_write_dictionary_html(tmp_path: Path):
    """Test that the extension is forced and parent folders are created."""
    written = write_dictionary_html(_dictionary(), tmp_path / "reports" / "dictionary.txt")

    assert written == tmp_path / "reports" / "dictionary.html"
    assert written.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

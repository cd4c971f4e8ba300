"""
Tests for the dataset_description.json writer.
"""

import json

import pytest

from psychds.core.description import (
    SCHEMA_CONTEXT,
    TEMPLATE_VERSION,
    author_to_person,
    build_dataset_description,
    create_description_template,
    load_json,
    omit_nulls,
    variables_from_columns,
    write_json,
)
from psychds.core.models import Author, DataDictionary, DatasetInfo, VariableDefinition


def test_omit_nulls_recurses():
    data = {
        "a": None,
        "b": {"c": None, "d": 1},
        "e": [None, {"f": None, "g": "x"}, 3],
        "h": "",
    }

    assert omit_nulls(data) == {"b": {"d": 1}, "e": [{"g": "x"}, 3], "h": ""}


class TestTemplate:
    """Tests for the legacy description template."""

    def test_template_keys(self, dataset_info):
        template = create_description_template(dataset_info)

        assert template["Name"] == "Stroop Study"
        assert template["BIDSVersion"] == TEMPLATE_VERSION
        assert template["Authors"] == ["Ada Lovelace", "Alan Turing"]
        assert template["License"] == "CC-BY-4.0"

    def test_template_omits_empty_fields(self, dataset_info):
        """Test that blank optional fields do not appear in the template."""
        dataset_info.acknowledgements = "   "
        template = create_description_template(dataset_info)

        for key in ("Acknowledgements", "HowToAcknowledge", "Funding", "ReferencesAndLinks", "DatasetDOI"):
            assert key not in template

    def test_template_optional_fields(self):
        info = DatasetInfo(
            name="Study",
            description="A study",
            acknowledgements="Thanks",
            funding=["NSF 123", ""],
            doi="10.1234/abcd",
        )

        template = create_description_template(info)

        assert template["Acknowledgements"] == "Thanks"
        assert template["Funding"] == ["NSF 123"]
        assert template["DatasetDOI"] == "10.1234/abcd"


class TestAuthorToPerson:
    """Tests for schema.org Person conversion."""

    def test_with_orcid(self):
        person = author_to_person(Author("Ada", "Lovelace", "https://orcid.org/0000-0001"))

        assert person == {
            "@type": "Person",
            "givenName": "Ada",
            "familyName": "Lovelace",
            "@id": "https://orcid.org/0000-0001",
        }

    def test_without_orcid(self):
        """Test that '@id' is only present when an ORCID is given."""
        person = author_to_person(Author("Alan", "Turing"))
        assert "@id" not in person

        person = author_to_person(Author("Alan", "Turing", "  "))
        assert "@id" not in person


def test_variables_from_columns(sample_columns):
    """Test that variables are deduplicated and the first description wins."""
    variables = variables_from_columns(sample_columns)

    assert [v["name"] for v in variables] == ["subject", "rt", "accuracy"]
    assert "description" not in variables[0]
    assert variables[1]["description"] == "Reaction time in ms"
    assert all(v["@type"] == "PropertyValue" for v in variables)


class TestBuildDatasetDescription:
    """Tests for the schema.org Dataset document."""

    def test_required_fields(self, dataset_info, sample_columns):
        description = build_dataset_description(dataset_info, sample_columns)

        assert description["@context"] == SCHEMA_CONTEXT
        assert description["@type"] == "Dataset"
        assert description["name"] == "Stroop Study"
        assert description["description"] == "Reaction times in a Stroop task"
        assert description["license"] == "CC-BY-4.0"
        assert description["version"] == "1.0.0"
        assert description["keywords"] == ["stroop", "attention"]
        assert len(description["author"]) == 2
        assert len(description["variableMeasured"]) == 3

    def test_nulls_are_omitted(self):
        """Test that no key carries a null value."""
        info = DatasetInfo(name="Study", description="", license=None, version=None)

        description = build_dataset_description(info)

        assert "description" not in description
        assert "license" not in description
        assert "version" not in description
        assert "author" not in description
        assert "variableMeasured" not in description
        assert None not in description.values()

    def test_optional_fields(self):
        info = DatasetInfo(
            name="Study",
            description="A study",
            funding=["NSF 123"],
            references=["https://example.org/paper"],
            doi="10.1234/abcd",
            how_to_acknowledge="Cite the paper",
            acknowledgements="Thanks to the lab",
        )

        description = build_dataset_description(info)

        assert description["funder"] == ["NSF 123"]
        assert description["citation"] == ["https://example.org/paper"]
        assert description["identifier"] == "10.1234/abcd"
        assert description["creditText"] == "Cite the paper"
        assert description["acknowledgements"] == "Thanks to the lab"

    def test_populated_info_has_exactly_its_keys(self, sample_columns):
        """Test that every filled-in field is written and nothing else."""
        info = DatasetInfo(
            name="Study",
            description="A study",
            authors=[Author("Ada", "Lovelace", "0000-0002-1825-0097")],
            license="CC0-1.0",
            version="2.0.0",
            acknowledgements="Thanks to the lab",
            how_to_acknowledge="Cite the paper",
            funding=["NSF 123"],
            references=["https://example.org/paper"],
            doi="10.1234/abcd",
            keywords=["stroop"],
        )

        description = build_dataset_description(info, sample_columns)

        assert set(description) == {
            "@context", "@type", "name", "description", "author", "license", "version",
            "keywords", "funder", "citation", "identifier", "creditText", "acknowledgements",
            "variableMeasured",
        }

    def test_populated_template_has_exactly_its_keys(self):
        info = DatasetInfo(
            name="Study",
            description="A study",
            authors=[Author("Ada", "Lovelace")],
            acknowledgements="Thanks to the lab",
            how_to_acknowledge="Cite the paper",
            funding=["NSF 123"],
            references=["https://example.org/paper"],
            doi="10.1234/abcd",
        )

        assert set(create_description_template(info)) == {
            "Name", "BIDSVersion", "Description", "License", "Authors", "Acknowledgements",
            "HowToAcknowledge", "Funding", "ReferencesAndLinks", "DatasetDOI",
        }

    def test_dictionary_takes_precedence(self, dataset_info, sample_columns):
        """Test that an edited data dictionary replaces the column summaries."""
        dictionary = DataDictionary(
            variables={"rt": VariableDefinition(name="rt", type="number", unit="milliseconds")},
            missing_values=["NA"],
        )

        description = build_dataset_description(dataset_info, sample_columns, dictionary)

        assert description["variableMeasured"] == [{
            "@type": "PropertyValue",
            "name": "rt",
            "valueType": "number",
            "missingValueCodes": ["NA"],
            "unitText": "milliseconds",
            "required": False,
            "unique": False,
        }]

    def test_empty_dictionary_falls_back_to_columns(self, dataset_info, sample_columns):
        description = build_dataset_description(dataset_info, sample_columns, DataDictionary())
        assert [v["name"] for v in description["variableMeasured"]] == ["subject", "rt", "accuracy"]


class TestJsonFiles:
    """Tests for reading and writing JSON documents."""

    def test_write_json_format(self, tmp_path):
        """Test that documents are UTF-8, 2-space indented and end with a newline."""
        path = write_json({"name": "Müller", "nested": {"a": 1}}, tmp_path / "sub" / "doc.json")

        text = path.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert "Müller" in text
        assert '\n  "nested": {\n    "a": 1\n  }' in text
        assert load_json(path) == {"name": "Müller", "nested": {"a": 1}}

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")

        with pytest.raises(ValueError):
            load_json(path)

"""
Data dictionary inference and conversion.

Variable types are guessed from the raw CSV values of a column in a fixed
order: identifiers, JSON strings, booleans, numbers, then plain or
categorical strings. The guesses only seed the dictionary editor; the user
reviews and overrides them before they are written to variableMeasured.
"""

import json
import math
import re
import statistics
from pathlib import Path
from typing import Any, Optional

from .models import CategoryValue, DataDictionary, VariableDefinition
from ..infrastructure.csv_loader import extract_variable_info, read_column_values
from ..infrastructure.logging_config import get_logger

logger = get_logger(__name__)


NA_TOKENS = frozenset({
    "", "NA", "N/A", "na", "n/a", "null", "NULL", "Null", "None", "none", "NONE",
    "undefined", "NaN", "-999", "missing", ".", "-",
})

VARIABLE_TYPES = ("string", "integer", "number", "boolean", "categorical", "date", "datetime")

_ID_PATTERNS = [
    r"\bid\b", r"\bids\b", r"_id$", r"^id_",
    r"\buuid\b", r"\bguid\b", r"\bkey\b", r"\bcode$",
    r"^subject", r"^participant", r"^child_?id",
    r"^session_?id", r"^trial_?id", r"^user_?id", r"^record_?id",
]

_BOOLEAN_PAIRS = [{"false", "true"}, {"f", "t"}, {"n", "y"}, {"no", "yes"}]
_SINGLE_BOOLEAN_VALUES = {"true", "false", "yes", "no", "t", "f", "y", "n"}

_BOOLEAN_NAME_PATTERNS = [
    r"\bcorrect\b", r"\bsuccess\b", r"\bvalid\b", r"\bcomplete\b",
    r"\bfinished\b", r"\bdone\b", r"\bfailed\b", r"\berror\b",
    r"\btimeout\b", r"\bflag\b", r"\bis_", r"\bhas_", r"\bwas_",
]
_RESPONSE_NAME_PATTERNS = [
    r"\bresponse\b", r"\bresp\b", r"\bchoice\b", r"\bbutton\b",
    r"\bkey\b", r"\banswer\b", r"\bselect",
]

_NUMERIC_CATEGORY_PATTERNS = [
    r"\bgroup\b", r"\bcondition\b", r"\btreatment\b", r"\bcategory\b", r"\btype\b",
    r"\bclass\b", r"\blevel\b", r"\bfactor\b", r"\barm\b",
]
_STRING_CATEGORY_PATTERNS = _NUMERIC_CATEGORY_PATTERNS + [
    r"\bstatus\b", r"\bstate\b", r"\bphase\b", r"\bwave\b", r"\bcohort\b",
]

# Ordered (pattern, description) pairs matched against the lower-cased name
_DESCRIPTION_PATTERNS = [
    (r"\bchild_?id\b", "Unique identifier for each child participant"),
    (r"\bsession_?id\b", "Unique identifier for each session"),
    (r"\btrial_?id\b", "Unique identifier for each trial"),
    (r"\btrial_?type\b", "Type of trial or experimental event"),
    (r"\btrial_?index\b|\btrial_?num(ber)?\b", "Sequential trial number within the experiment"),
]
_LATER_DESCRIPTION_PATTERNS = [
    (r"\brt\b|\breaction_?time\b|\bresponse_?time\b", "Response time or reaction time measurement"),
    (r"\btime_?elapsed\b|\belapsed_?time\b", "Total time elapsed since experiment start"),
    (r"\btimestamp\b", "Timestamp of the event"),
    (r"\btimeout\b", "Whether the trial timed out"),
    (r"\bduration\b", "Duration of the event"),
]
_FINAL_DESCRIPTION_PATTERNS = [
    (r"\baccuracy\b|\bcorrect\b|\bacc\b", "Accuracy or correctness of response"),
    (r"\bsuccess\b", "Whether the action was successful"),
    (r"\bcondition\b", "Experimental condition or group assignment"),
    (r"\bgroup\b", "Group assignment"),
    (r"\bblock\b", "Block number in the experimental design"),
]
_TAIL_DESCRIPTION_PATTERNS = [
    (r"\bstimulus\b|\bstim\b", "Stimulus identifier or stimulus information"),
    (r"\bage\b", "Age of the participant"),
    (r"\bgender\b|\bsex\b", "Gender or biological sex of the participant"),
    (r"\bscore\b|\brating\b", "Score or rating value"),
    (r"internal_node_id", "Internal node identifier from the experiment framework"),
]

_TYPE_DESCRIPTIONS = {
    "integer": "Numeric variable (whole numbers)",
    "number": "Numeric variable (decimal numbers)",
    "boolean": "Boolean variable (true/false)",
    "categorical": "Categorical variable",
    "string": "Text variable",
}

_SCHEMA_TYPES = {
    "text": "string",
    "string": "string",
    "number": "number",
    "float": "number",
    "integer": "integer",
    "boolean": "boolean",
    "date": "date",
    "datetime": "datetime",
    "categorical": "categorical",
}


def _matches_any(patterns: list[str], text: str) -> bool:
    return any(re.search(pattern, text) for pattern in patterns)


def format_number(value: float) -> str:
    """Format a number the way it would be typed: '3' rather than '3.0'."""
    if value == int(value):
        return str(int(value))
    return repr(value)


def clean_values(values: list[str]) -> list[str]:
    """Trim values and drop the ones that look like missing data."""
    trimmed = (v.strip() for v in values)
    return [v for v in trimmed if v not in NA_TOKENS]


def is_identifier(name: str, n_unique: int, n_clean: int) -> bool:
    """
    Check whether a column looks like an identifier.

    The name must follow an id pattern and at least half of the values must
    be distinct.
    """
    if n_clean == 0:
        return False
    uniqueness = n_unique / n_clean
    return _matches_any(_ID_PATTERNS, name.lower()) and (uniqueness > 0.5 or n_unique >= n_clean * 0.5)


def detect_json_pattern(values: list[str]) -> str:
    """
    Check whether a column holds serialized JSON.

    Returns:
        'JSON array', 'JSON object', or '' when the values are not JSON.
    """
    sample = values[:100]
    if not sample:
        return ""
    if all(v.startswith("[") and v.endswith("]") for v in sample):
        return "JSON array"
    if all(v.startswith("{") and v.endswith("}") for v in sample):
        return "JSON object"
    return ""


def detect_boolean(values: list[str], name: str = "") -> Optional[list[CategoryValue]]:
    """
    Check whether a column is boolean.

    Accepts true/false style text pairs, 0/1 codes when the name suggests a
    flag rather than a response, and single-valued boolean text.

    Returns:
        The allowed values, or None when the column is not boolean.
    """
    unique_values = sorted(set(values))
    if len(unique_values) > 2:
        return None

    lowered = {v.lower() for v in unique_values}
    name_lower = name.lower()

    text_boolean = len(lowered) == len(unique_values) == 2 and lowered in _BOOLEAN_PAIRS
    flag_boolean = (
        set(unique_values) == {"0", "1"}
        and _matches_any(_BOOLEAN_NAME_PATTERNS, name_lower)
        and not _matches_any(_RESPONSE_NAME_PATTERNS, name_lower)
    )
    single_boolean = len(unique_values) == 1 and unique_values[0].lower() in _SINGLE_BOOLEAN_VALUES

    if text_boolean or flag_boolean or single_boolean:
        return [CategoryValue(value=v, label=v) for v in unique_values]
    return None


def parse_numeric(values: list[str]) -> Optional[list[float]]:
    """
    Parse a column as numbers.

    Returns:
        The parsed numbers when at least 90% of the values parse, else None.
    """
    values = [v.strip() for v in values if v.strip()]
    if not values:
        return None

    numbers = []
    for value in values:
        try:
            number = float(value)
        except ValueError:
            continue
        if math.isfinite(number):
            numbers.append(number)

    if numbers and len(numbers) / len(values) >= 0.90:
        return numbers
    return None


def infer_unit(name: str, mean_value: float) -> str:
    """
    Guess the unit of a numeric variable from its name.

    Args:
        name: Variable name.
        mean_value: Mean of the column, used to tell milliseconds from seconds
            and proportions from percentages.

    Returns:
        A unit name, or '' when nothing matches.
    """
    name_lower = name.lower()

    if re.search(r"\b(rt|reaction_?time|response_?time|latency|duration)\b", name_lower):
        return "milliseconds" if mean_value > 100 else "seconds"
    if re.search(r"time_?elapsed|elapsed_?time", name_lower):
        return "milliseconds" if mean_value > 1000 else "seconds"
    if re.search(r"\bage\b", name_lower):
        return "years"
    if re.search(r"\b(score|rating|points)\b", name_lower):
        return "points"
    if re.search(r"\b(percent|pct|proportion)\b", name_lower):
        return "proportion" if mean_value <= 1 else "percent"
    return ""


def _analyze_numeric(variable: VariableDefinition, numbers: list[float]) -> None:
    unique_numbers = sorted(set(numbers))
    is_integer = all(n == int(n) for n in numbers)

    if len(unique_numbers) <= 3 and is_integer:
        code_sequence = (
            len(unique_numbers) > 1
            and all(b - a == 1 for a, b in zip(unique_numbers, unique_numbers[1:]))
            and unique_numbers[0] >= 0
            and unique_numbers[-1] <= 10
        )
        name_suggests_category = _matches_any(_NUMERIC_CATEGORY_PATTERNS, variable.name.lower())
        if code_sequence and (name_suggests_category or len(unique_numbers) == 2):
            variable.type = "categorical"
            variable.categorical_values = [
                CategoryValue(value=format_number(n), label=format_number(n)) for n in unique_numbers
            ]
            return

    variable.type = "integer" if is_integer else "number"
    variable.min_value = format_number(min(numbers))
    variable.max_value = format_number(max(numbers))
    variable.unit = infer_unit(variable.name, statistics.fmean(numbers))


def _analyze_string(variable: VariableDefinition, values: list[str]) -> None:
    variable.type = "string"
    lengths = [len(v) for v in values]
    if statistics.fmean(lengths) > 50 or max(lengths) > 200:
        return

    unique_values = sorted(set(values))
    n_unique = len(unique_values)
    uniqueness = n_unique / len(values)

    categorical = False
    if _matches_any(_STRING_CATEGORY_PATTERNS, variable.name.lower()) and n_unique <= 20:
        categorical = True
    if 2 <= n_unique <= 20 and uniqueness < 0.05 and len(values) >= 20:
        categorical = True
    if 2 <= n_unique <= 10 and statistics.fmean(len(v) for v in unique_values) < 30:
        categorical = True

    if categorical:
        variable.type = "categorical"
        variable.categorical_values = [CategoryValue(value=v, label=v) for v in unique_values]


def analyze_variable(name: str, values: list[str]) -> VariableDefinition:
    """
    Infer a data dictionary entry from the raw values of a column.

    Args:
        name: Column name.
        values: Raw cell values as read from the CSV file.

    Returns:
        A VariableDefinition with type, unit, range, categories and the
        required/unique flags filled in. The description is left empty.
    """
    variable = VariableDefinition(name=name)

    cleaned = clean_values(values)
    if not cleaned:
        return variable

    n_clean = len(cleaned)
    n_unique = len(set(cleaned))
    variable.required = n_clean / len(values) > 0.95
    variable.unique = n_unique == n_clean

    if is_identifier(name, n_unique, n_clean):
        variable.unique = True
        return variable

    json_pattern = detect_json_pattern(cleaned)
    if json_pattern:
        variable.pattern = json_pattern
        return variable

    boolean_values = detect_boolean(cleaned, name)
    if boolean_values is not None:
        variable.type = "boolean"
        variable.categorical_values = boolean_values
        return variable

    numbers = parse_numeric(cleaned)
    if numbers is not None:
        _analyze_numeric(variable, numbers)
        return variable

    _analyze_string(variable, cleaned)
    return variable


def generate_description(name: str, variable_type: str) -> str:
    """
    Suggest a description for a variable from its name.

    Args:
        name: Variable name.
        variable_type: Inferred type, used for the generic fallback.

    Returns:
        A one-line description.
    """
    name_lower = name.lower()

    if re.search(r"^(participant|subject|sub)_?(id|ID|Id)$|\bparticipant_?id\b", name):
        return "Unique identifier for each participant in the study"
    for pattern, description in _DESCRIPTION_PATTERNS:
        if re.search(pattern, name_lower):
            return description
    if re.search(r"\btrial\b", name_lower) and not re.search(r"type|index|id", name_lower):
        return "Trial number or trial identifier"
    for pattern, description in _LATER_DESCRIPTION_PATTERNS:
        if re.search(pattern, name_lower):
            return description
    if re.search(r"\bresponse\b", name_lower) and "time" not in name_lower:
        return "Participant response or response value"
    for pattern, description in _FINAL_DESCRIPTION_PATTERNS:
        if re.search(pattern, name_lower):
            return description
    if re.search(r"\bsession\b", name_lower) and "id" not in name_lower:
        return "Session number or session identifier"
    for pattern, description in _TAIL_DESCRIPTION_PATTERNS:
        if re.search(pattern, name_lower):
            return description
    if name_lower.startswith("failed_"):
        return f"List of {name_lower[len('failed_'):]} resources that failed to load"

    type_description = _TYPE_DESCRIPTIONS.get(variable_type, "Unknown variable type")
    return f"Variable: {name} - {type_description}"


def build_data_dictionary(project_dir: Path, files: list[str], max_rows: int = 10000) -> DataDictionary:
    """
    Analyze every variable of the selected CSV files.

    Each variable is analyzed from the first file that contains it.

    Args:
        project_dir: Directory the file paths are relative to.
        files: CSV files relative to project_dir.
        max_rows: Maximum rows read per column.

    Returns:
        A DataDictionary with generated descriptions.
    """
    dictionary = DataDictionary()
    for name, present_in in extract_variable_info(project_dir, files).items():
        values = read_column_values(Path(project_dir) / present_in[0], name, max_rows=max_rows)
        variable = analyze_variable(name, values)
        variable.description = generate_description(name, variable.type)
        variable.present_in = list(present_in)
        dictionary.variables[name] = variable

    logger.info(f"Analyzed {len(dictionary.variables)} variables from {len(files)} files")
    return dictionary


def to_property_value(variable: VariableDefinition, missing_values: Optional[list[str]] = None) -> dict[str, Any]:
    """
    Convert a dictionary entry to a schema.org PropertyValue.

    Empty optional fields are omitted; required and unique are always present.

    Args:
        variable: Dictionary entry.
        missing_values: Missing value codes shared by all variables.

    Returns:
        The PropertyValue object.
    """
    prop: dict[str, Any] = {"@type": "PropertyValue", "name": variable.name}
    if variable.description.strip():
        prop["description"] = variable.description.strip()
    prop["valueType"] = variable.type

    if missing_values:
        prop["missingValueCodes"] = list(missing_values)
    if variable.unit:
        prop["unitText"] = variable.unit
    if variable.min_value:
        prop["minValue"] = variable.min_value
    if variable.max_value:
        prop["maxValue"] = variable.max_value

    if variable.type == "categorical" and variable.categorical_values:
        references = []
        for category in variable.categorical_values:
            reference = {"value": category.value}
            if category.label and category.label != category.value:
                reference["label"] = category.label
            if category.description:
                reference["description"] = category.description
            references.append(reference)
        prop["valueReference"] = references

    prop["required"] = bool(variable.required)
    prop["unique"] = bool(variable.unique)
    if variable.pattern:
        prop["pattern"] = variable.pattern
    return prop


def from_property_value(data: dict[str, Any], base: Optional[VariableDefinition] = None) -> VariableDefinition:
    """
    Read a PropertyValue back into a dictionary entry.

    Fields missing from data keep the values of base, so stored metadata can
    be layered over freshly inferred definitions.
    """
    variable = base if base is not None else VariableDefinition(name=data.get("name", ""))

    schema_type = str(data.get("valueType") or data.get("@type") or "").lower()
    variable.type = _SCHEMA_TYPES.get(schema_type, variable.type)
    variable.description = data.get("description", variable.description) or ""
    variable.unit = data.get("unitText", variable.unit) or ""
    variable.min_value = str(data.get("minValue", ""))
    variable.max_value = str(data.get("maxValue", ""))
    variable.required = bool(data.get("required", False))
    variable.unique = bool(data.get("unique", False))
    variable.pattern = data.get("pattern", "") or ""

    references = data.get("valueReference") or []
    if references:
        variable.categorical_values = [
            CategoryValue(
                value=str(ref.get("value", "")),
                label=str(ref.get("label", ref.get("value", ""))),
                description=str(ref.get("description", "")),
            )
            for ref in references
        ]
    return variable


def merge_existing_metadata(dictionary: DataDictionary, description: dict[str, Any]) -> DataDictionary:
    """
    Apply variableMeasured entries from an existing description document.

    Only variables already in the dictionary are updated. Global missing
    value codes are taken from the first entry that carries them.

    Args:
        dictionary: Inferred dictionary, updated in place.
        description: Parsed dataset_description.json.

    Returns:
        The same dictionary.
    """
    missing_codes = None
    for entry in description.get("variableMeasured") or []:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if name in dictionary.variables:
            from_property_value(entry, dictionary.variables[name])
        if missing_codes is None and entry.get("missingValueCodes") is not None:
            missing_codes = [str(code) for code in entry["missingValueCodes"]]

    if description.get("missingValueCodes") is not None:
        missing_codes = [str(code) for code in description["missingValueCodes"]]
    if missing_codes is not None:
        dictionary.missing_values = missing_codes
    return dictionary


def save_dictionary_to_description(dictionary: DataDictionary, description_path: Path) -> dict[str, Any]:
    """
    Replace variableMeasured in a dataset_description.json file.

    Args:
        dictionary: Dictionary to write.
        description_path: Existing description document.

    Returns:
        The updated document.

    Raises:
        FileNotFoundError: If the document doesn't exist.
    """
    description_path = Path(description_path)
    if not description_path.exists():
        raise FileNotFoundError(f"File not found: {description_path}")

    with open(description_path, 'r', encoding='utf-8') as f:
        description = json.load(f)

    description["variableMeasured"] = [
        to_property_value(variable, dictionary.missing_values)
        for variable in dictionary.variables.values()
    ]

    with open(description_path, 'w', encoding='utf-8') as f:
        json.dump(description, f, indent=2, ensure_ascii=False)
        f.write("\n")

    logger.info(f"Wrote {len(dictionary.variables)} variables to {description_path}")
    return description

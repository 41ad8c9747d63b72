"""Propose field definitions from existing collection records.

Used to bootstrap definitions for collections that already hold data.
Proposals follow the first non-null value seen for each key.
"""

# flake8: noqa: E501


from typing import Any, Iterable, List

from apps.api.models.field_types import FieldType

# Keys that identify a record rather than describe it
SKIPPED_KEYS = frozenset({"id", "_id", "__v"})

LONG_TEXT_THRESHOLD = 100


def infer_field_type(value: Any) -> FieldType:
    """
    Guess a field type from one sample value.

    Example:
        >>> infer_field_type("ada@example.com")
        <FieldType.EMAIL: 'email'>
    """
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldType.NUMBER
    if isinstance(value, (dict, list)):
        return FieldType.JSON
    if isinstance(value, str):
        if "@" in value and "." in value:
            return FieldType.EMAIL
        if value.startswith(("http://", "https://")):
            return FieldType.URL
        if len(value) > LONG_TEXT_THRESHOLD:
            return FieldType.TEXT
    return FieldType.STRING


def generate_label(name: str) -> str:
    """snake_case name -> Title Case label ("unit_price" -> "Unit Price")."""
    return " ".join(word[:1].upper() + word[1:] for word in name.split("_"))


def infer_field_definitions(documents: Iterable[dict], start_order: int = 0) -> List[dict]:
    """
    Build field definition payloads from sample documents.

    Args:
        documents: Sample records (the ``id`` key is ignored)
        start_order: field_order assigned to the first proposal

    Returns:
        One create-field payload per distinct key, in first-seen order
    """
    names: List[str] = []
    samples: dict = {}
    for document in documents:
        for key, value in document.items():
            if key in SKIPPED_KEYS:
                continue
            if key not in samples:
                names.append(key)
                samples[key] = value
            elif samples[key] is None:
                samples[key] = value

    proposals = []
    for order, name in enumerate(names, start=start_order):
        label = generate_label(name)
        proposals.append(
            {
                "field_name": name,
                "field_type": infer_field_type(samples[name]).value,
                "field_label": label,
                "is_required": False,
                "placeholder": f"Enter {label.lower()}",
                "field_order": order,
            }
        )
    return proposals

"""Family history normalization - relation labels and health problem tags.

Relations collapse onto the eight relatives the intake form pre-populates.
Problem checkbox keys resolve against the ``family_problem_lookup`` table by
probing a short list of name variants; the first variant found wins.
"""

from typing import Iterable, Mapping

CANONICAL_RELATIONS = (
    "children",
    "grandfather_paternal",
    "grandfather_maternal",
    "grandmother_paternal",
    "grandmother_maternal",
    "father",
    "mother",
    "sibling",
)

_RELATION_ALIASES = {
    "children": "children",
    "father": "father",
    "mother": "mother",
    "sibling": "sibling",
    "brother/sister": "sibling",
    "brother / sister": "sibling",
    "grandfather (paternal)": "grandfather_paternal",
    "grandfather (maternal)": "grandfather_maternal",
    "grandmother (paternal)": "grandmother_paternal",
    "grandmother (maternal)": "grandmother_maternal",
    "grandfather_paternal": "grandfather_paternal",
    "grandfather_maternal": "grandfather_maternal",
    "grandmother_paternal": "grandmother_paternal",
    "grandmother_maternal": "grandmother_maternal",
}

# Checkbox keys offered by the family history tab
PROBLEM_KEYS = (
    "addictions",
    "arthritis",
    "depression",
    "cancer",
    "diabetes",
    "heart",
    "hypertension",
    "osteoporosis",
    "stroke",
    "suicide",
)

# Keys whose lookup name differs from the key itself
PROBLEM_ALIASES = {
    "heart": "heart disease",
}

CANONICAL_PROBLEM_NAMES = tuple(PROBLEM_ALIASES.get(key, key) for key in PROBLEM_KEYS)


def normalize_relation(label: str | None) -> str:
    """Map a relation label to its canonical key; unknown labels pass through."""
    key = (label or "").strip().lower()
    return _RELATION_ALIASES.get(key, label or "")


def is_default_relation(label: str | None) -> bool:
    return normalize_relation(label) in CANONICAL_RELATIONS


def normalize_name(name: str | None) -> str:
    return name.strip().lower() if name else ""


def build_lookup_map(rows: Iterable[Mapping]) -> dict[str, int]:
    """Index lookup rows ({problem_id, name}) by normalized name."""
    return {normalize_name(row["name"]): row["problem_id"] for row in rows}


def problem_name_variants(key: str) -> list[str]:
    """Ordered candidate names: exact key, underscores as spaces, alias."""
    variants = [key, key.replace("_", " "), PROBLEM_ALIASES.get(key, key)]
    return [normalize_name(v) for v in variants]


def resolve_problem_id(key: str, lookup_by_name: Mapping[str, int]) -> int | None:
    for variant in problem_name_variants(key):
        problem_id = lookup_by_name.get(variant)
        if problem_id:
            return problem_id
    return None


def validate_problem_aliases(lookup_by_name: Mapping[str, int]) -> list[str]:
    """Return the form's problem keys that the lookup table cannot resolve."""
    return [key for key in PROBLEM_KEYS if resolve_problem_id(key, lookup_by_name) is None]

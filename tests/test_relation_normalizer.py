"""Tests for family relation and problem normalization."""

from app.services.relation_normalizer import (
    CANONICAL_PROBLEM_NAMES,
    CANONICAL_RELATIONS,
    build_lookup_map,
    is_default_relation,
    normalize_relation,
    problem_name_variants,
    resolve_problem_id,
    validate_problem_aliases,
)

LOOKUP_ROWS = [
    {"problem_id": 1, "name": "Addictions"},
    {"problem_id": 2, "name": "Diabetes"},
    {"problem_id": 3, "name": "Heart Disease"},
    {"problem_id": 4, "name": " high cholesterol "},
]


class TestNormalizeRelation:
    def test_sibling_labels(self):
        assert normalize_relation("Brother/Sister") == "sibling"
        assert normalize_relation("brother / sister") == "sibling"
        assert normalize_relation("Sibling") == "sibling"

    def test_grandparents(self):
        assert normalize_relation("Grandfather (Paternal)") == "grandfather_paternal"
        assert normalize_relation("grandmother (maternal)") == "grandmother_maternal"

    def test_trims_and_folds_case(self):
        assert normalize_relation("  MOTHER ") == "mother"

    def test_canonical_keys_are_stable(self):
        for relation in CANONICAL_RELATIONS:
            assert normalize_relation(relation) == relation

    def test_unknown_passes_through(self):
        assert normalize_relation("Aunt") == "Aunt"

    def test_empty(self):
        assert normalize_relation(None) == ""
        assert normalize_relation("") == ""


class TestIsDefaultRelation:
    def test_defaults(self):
        assert is_default_relation("Father") is True
        assert is_default_relation("Brother/Sister") is True

    def test_extra(self):
        assert is_default_relation("Aunt") is False
        assert is_default_relation("") is False


class TestProblemResolution:
    def test_variants_order(self):
        assert problem_name_variants("heart") == ["heart", "heart", "heart disease"]
        assert problem_name_variants("high_cholesterol") == [
            "high_cholesterol", "high cholesterol", "high_cholesterol",
        ]

    def test_lookup_map_normalizes_names(self):
        lookup = build_lookup_map(LOOKUP_ROWS)
        assert lookup["heart disease"] == 3
        assert lookup["high cholesterol"] == 4

    def test_heart_alias(self):
        lookup = build_lookup_map(LOOKUP_ROWS)
        assert resolve_problem_id("heart", lookup) == 3

    def test_underscore_variant(self):
        lookup = build_lookup_map(LOOKUP_ROWS)
        assert resolve_problem_id("high_cholesterol", lookup) == 4

    def test_exact_match_wins(self):
        lookup = {"heart": 10, "heart disease": 3}
        assert resolve_problem_id("heart", lookup) == 10

    def test_miss(self):
        lookup = build_lookup_map(LOOKUP_ROWS)
        assert resolve_problem_id("stroke", lookup) is None

    def test_validate_reports_unresolved_keys(self):
        lookup = build_lookup_map(LOOKUP_ROWS)
        missing = validate_problem_aliases(lookup)
        assert "heart" not in missing
        assert "diabetes" not in missing
        assert "stroke" in missing

    def test_canonical_names_resolve_every_key(self):
        lookup = {name: i for i, name in enumerate(CANONICAL_PROBLEM_NAMES, start=1)}
        assert validate_problem_aliases(lookup) == []

"""Tests for loading and normalizing field definitions."""

import json

import pytest

from fieldreg.core.exceptions import RegistryLoadError
from fieldreg.core.types import ReconciliationStrategy, Requirement, ValidationIssueKind
from fieldreg.registry import (
    CommonProfile,
    FieldPath,
    FieldRegistry,
    ProfileEntry,
    StructuredProfile,
    load_field_definitions,
)


def _load_single(spec: dict, namespaces: dict | None = None):
    """Load a registry holding one field named "f" in namespace "ns"."""
    definitions = {"namespaces": {"ns": {"fields": {"f": spec}}, **(namespaces or {})}}
    registry, issues = FieldRegistry.load(definitions)
    return registry, issues


class TestProfileNormalization:
    """Tests for the three extraction_profiles encodings."""

    def test_legacy_list_becomes_expected_entries(self):
        """Should turn each legacy label into an expected entry without hints."""
        registry, issues = _load_single({"extraction_profiles": ["Task Order", "Contract Award"]})

        profile = registry.get("f").profile
        assert issues == []
        assert isinstance(profile, StructuredProfile)
        assert dict(profile.entries) == {
            "Task Order": ProfileEntry(Requirement.EXPECTED, ()),
            "Contract Award": ProfileEntry(Requirement.EXPECTED, ()),
        }

    def test_common_sentinel_string(self):
        """Should tag the "__common__" sentinel as a common profile."""
        registry, issues = _load_single({"extraction_profiles": "__common__"})

        definition = registry.get("f")
        assert issues == []
        assert definition.is_common
        assert definition.profile == CommonProfile(ProfileEntry(Requirement.EXPECTED, ()))

    def test_common_sentinel_in_list(self):
        """Should accept the sentinel wrapped in a legacy list."""
        registry, _ = _load_single({"extraction_profiles": ["__common__"]})

        assert registry.get("f").is_common

    def test_common_with_explicit_entry(self):
        """Should keep an explicit requirement and hints on a common field."""
        registry, issues = _load_single({
            "extraction_profiles": {
                "__common__": {"requirement": "required", "extraction_hints": ["hint"]},
            },
        })

        assert issues == []
        assert registry.get("f").profile == CommonProfile(
            ProfileEntry(Requirement.REQUIRED, ("hint",))
        )

    def test_common_mixed_with_labels_is_flagged(self):
        """Should flag the sentinel combined with specific labels."""
        registry, issues = _load_single({"extraction_profiles": ["__common__", "Task Order"]})

        assert registry.get("f").is_common
        assert [i.kind for i in issues] == [ValidationIssueKind.MALFORMED_SCHEMA]

    def test_structured_map_used_as_is(self):
        """Should keep requirement and hints from the structured encoding."""
        registry, issues = _load_single({
            "extraction_profiles": {
                "Task Order": {"requirement": "optional", "extraction_hints": ["a", "b"]},
                "Contract Award": {"requirement": "required"},
            },
        })

        profile = registry.get("f").profile
        assert issues == []
        assert profile.get("Task Order") == ProfileEntry(Requirement.OPTIONAL, ("a", "b"))
        assert profile.get("Contract Award") == ProfileEntry(Requirement.REQUIRED, ())

    def test_structured_accepts_camel_case_hints_and_bare_requirement(self):
        """Should accept extractionHints and a bare requirement string."""
        registry, issues = _load_single({
            "extraction_profiles": {
                "Task Order": {"extractionHints": ["x"]},
                "Contract Award": "optional",
            },
        })

        profile = registry.get("f").profile
        assert issues == []
        assert profile.get("Task Order") == ProfileEntry(Requirement.EXPECTED, ("x",))
        assert profile.get("Contract Award").requirement is Requirement.OPTIONAL

    def test_missing_profiles_is_empty_structured(self):
        """Should treat a field without profiles as never extracted."""
        registry, issues = _load_single({"type": "string"})

        assert issues == []
        assert dict(registry.get("f").profile.entries) == {}

    def test_invalid_requirement_drops_entry(self):
        """Should record an invalid requirement and drop only that entry."""
        registry, issues = _load_single({
            "extraction_profiles": {
                "Task Order": {"requirement": "mandatory"},
                "Contract Award": {"requirement": "required"},
            },
        })

        profile = registry.get("f").profile
        assert [i.kind for i in issues] == [ValidationIssueKind.INVALID_REQUIREMENT]
        assert profile.get("Task Order") is None
        assert profile.get("Contract Award") is not None

    def test_unsupported_encoding(self):
        """Should flag a profile encoding that is neither list, map nor sentinel."""
        registry, issues = _load_single({"extraction_profiles": 42})

        assert issues[0].kind is ValidationIssueKind.MALFORMED_SCHEMA
        assert not registry.get("f").is_common


class TestSourceOverrides:
    """Tests for source override parsing."""

    def test_override_path_parsed_once(self):
        """Should parse the dotted path into a FieldPath."""
        registry, issues = _load_single(
            {"source_overrides": {"sam_notice": {"field": "sam.agency", "reconciliation": "merge"}}},
            namespaces={"sam": {"fields": {"agency": {}}}},
        )

        override = registry.get("f").override_for("sam_notice")
        assert issues == []
        assert override.target == FieldPath("sam", "agency")
        assert override.reconciliation is ReconciliationStrategy.MERGE

    def test_reconciliation_defaults_to_source_wins(self):
        """Should default to source_wins when no strategy is declared."""
        registry, _ = _load_single({"source_overrides": {"sam_notice": {"field": "sam.agency"}}})

        override = registry.get("f").override_for("sam_notice")
        assert override.reconciliation is ReconciliationStrategy.SOURCE_WINS

    @pytest.mark.parametrize("path", ["agency", "a.b.c", ".agency", "", None])
    def test_unparsable_path(self, path):
        """Should record unparsable paths and keep the override without a target."""
        registry, issues = _load_single({"source_overrides": {"sam_notice": {"field": path}}})

        override = registry.get("f").override_for("sam_notice")
        assert [i.kind for i in issues] == [ValidationIssueKind.UNPARSABLE_PATH]
        assert override.target is None

    def test_invalid_reconciliation_kept_as_none(self):
        """Should keep an invalid strategy as None for validate() to report."""
        registry, issues = _load_single({
            "source_overrides": {"sam_notice": {"field": "sam.agency", "reconciliation": "coin_flip"}},
        })

        assert issues == []
        assert registry.get("f").override_for("sam_notice").reconciliation is None

    def test_override_not_a_mapping(self):
        """Should flag overrides that are not mappings."""
        registry, issues = _load_single({"source_overrides": {"sam_notice": "sam.agency"}})

        assert issues[0].kind is ValidationIssueKind.MALFORMED_SCHEMA
        assert registry.get("f").override_for("sam_notice") is None


class TestRegistryLoad:
    """Tests for FieldRegistry.load() as a whole."""

    def test_load_sample(self, registry):
        """Should load every sample field in declaration order."""
        names = [d.name for d in registry.fields()]

        assert names[:4] == [
            "contract_number",
            "ordering_agency",
            "naics_codes",
            "period_of_performance",
        ]
        assert len(registry) == 10

    def test_namespaces_include_declared(self):
        """Should know namespaces even when they declare no fields."""
        registry, _ = FieldRegistry.load({"namespaces": {"sam": {"fields": {}}}})

        assert registry.has_namespace("sam")
        assert registry.namespaces() == ("sam",)

    def test_duplicate_field_keeps_first(self):
        """Should keep the first definition of a repeated field name."""
        registry, issues = FieldRegistry.load({
            "namespaces": {
                "a": {"fields": {"title": {"description": "first"}}},
                "b": {"fields": {"title": {"description": "second"}}},
            },
        })

        assert [i.kind for i in issues] == [ValidationIssueKind.DUPLICATE_FIELD]
        assert registry.get("title").namespace == "a"

    def test_discarded_duplicate_issues_not_reported(self):
        """Should report only the duplicate, not the discarded copy's defects."""
        registry, issues = FieldRegistry.load({
            "namespaces": {
                "contract": {"fields": {"title": {"extraction_profiles": ["Task Order"]}}},
                "crm": {"fields": {"title": {
                    "extraction_profiles": {"Task Order": {"requirement": "bogus"}},
                }}},
            },
        })

        assert [i.kind for i in issues] == [ValidationIssueKind.DUPLICATE_FIELD]
        assert registry.get("title").namespace == "contract"

    def test_malformed_field_spec_skipped(self):
        """Should skip a field whose spec is not a mapping and keep loading."""
        registry, issues = FieldRegistry.load({
            "namespaces": {"ns": {"fields": {"bad": "oops", "good": {}}}},
        })

        assert "bad" not in registry
        assert "good" in registry
        assert issues[0].field == "bad"

    def test_malformed_root(self):
        """Should return an empty registry for non-mapping input."""
        registry, issues = FieldRegistry.load(["not", "a", "mapping"])

        assert len(registry) == 0
        assert issues[0].kind is ValidationIssueKind.MALFORMED_SCHEMA

    def test_malformed_namespace_continues(self):
        """Should record a malformed namespace and load the others."""
        registry, issues = FieldRegistry.load({
            "namespaces": {"broken": [1, 2], "ok": {"fields": {"x": {}}}},
        })

        assert "x" in registry
        assert issues[0].scope == "namespace"

    def test_field_attributes(self, registry):
        """Should carry facet and vocabulary attributes through."""
        definition = registry.get("ordering_agency")

        assert definition.namespace == "contract"
        assert definition.path == FieldPath("contract", "ordering_agency")
        assert definition.facetable
        assert definition.facet_alias == "agency"
        assert definition.vocabulary == "agencies"
        assert definition.indexed

    def test_definitions_are_immutable(self, registry):
        """Should not allow mutating a loaded definition."""
        definition = registry.get("ordering_agency")

        with pytest.raises(AttributeError):
            definition.name = "other"
        with pytest.raises(TypeError):
            definition.source_overrides["asset"] = None

    def test_without(self, registry):
        """Should return a pruned copy and leave the original intact."""
        pruned = registry.without(["summary", "naics_codes"])

        assert "summary" not in pruned
        assert "summary" in registry
        assert pruned.has_namespace("document")
        assert pruned.vocabulary("agencies") is registry.vocabulary("agencies")


class TestVocabularyLoading:
    """Tests for vocabulary definitions."""

    def test_vocabulary_loaded(self, registry):
        """Should load values, lowercase alias keys and fuzzy settings."""
        vocabulary = registry.vocabulary("agencies")

        assert vocabulary.values[0] == "Department of Homeland Security"
        assert vocabulary.aliases["dhs"] == "Department of Homeland Security"
        assert vocabulary.fuzzy is True
        assert vocabulary.fuzzy_threshold is None

    def test_vocabulary_for_field(self, registry):
        """Should find a field's vocabulary by field name."""
        assert registry.vocabulary_for("ordering_agency").name == "agencies"
        assert registry.vocabulary_for("contract_number") is None
        assert registry.vocabulary_for("unknown") is None

    def test_alias_to_unknown_canonical_dropped(self):
        """Should drop aliases that point outside the canonical set."""
        registry, issues = FieldRegistry.load({
            "vocabularies": {"v": {"values": ["Alpha"], "aliases": {"a": "alpha", "b": "Beta"}}},
        })

        vocabulary = registry.vocabulary("v")
        assert dict(vocabulary.aliases) == {"a": "Alpha"}
        assert issues[0].scope == "vocabulary"

    def test_list_shorthand(self):
        """Should accept a bare list of values."""
        registry, issues = FieldRegistry.load({"vocabularies": {"v": ["Alpha", "Beta"]}})

        assert issues == []
        assert registry.vocabulary("v").values == ("Alpha", "Beta")

    def test_threshold_out_of_range(self):
        """Should reject thresholds outside (0, 1] and fall back to default."""
        registry, issues = FieldRegistry.load({
            "vocabularies": {"v": {"values": ["Alpha"], "fuzzy_threshold": 1.5}},
        })

        assert registry.vocabulary("v").fuzzy_threshold is None
        assert len(issues) == 1

    def test_malformed_values(self):
        """Should drop a vocabulary whose values are not strings."""
        registry, issues = FieldRegistry.load({"vocabularies": {"v": {"values": [1, 2]}}})

        assert registry.vocabulary("v") is None
        assert issues[0].field == "v"


class TestLoadFieldDefinitions:
    """Tests for load_field_definitions()."""

    def test_load_yaml(self, tmp_path):
        """Should parse a YAML definitions file."""
        path = tmp_path / "fields.yaml"
        path.write_text(
            "namespaces:\n"
            "  contract:\n"
            "    fields:\n"
            "      contract_number:\n"
            "        extraction_profiles: [Task Order]\n",
            encoding="utf-8",
        )

        registry, issues = FieldRegistry.load(load_field_definitions(path))

        assert issues == []
        assert registry.get("contract_number").profile.get("Task Order") is not None

    def test_load_json(self, tmp_path, field_definitions):
        """Should parse a JSON definitions file."""
        path = tmp_path / "fields.json"
        path.write_text(json.dumps(field_definitions), encoding="utf-8")

        registry, issues = FieldRegistry.load(load_field_definitions(path))

        assert issues == []
        assert len(registry) == 10

    def test_load_empty_file(self, tmp_path):
        """Should return empty definitions for an empty file."""
        path = tmp_path / "fields.yaml"
        path.write_text("", encoding="utf-8")

        assert load_field_definitions(path) == {}

    def test_load_missing_file(self, tmp_path):
        """Should raise RegistryLoadError when the file is missing."""
        with pytest.raises(RegistryLoadError):
            load_field_definitions(tmp_path / "nope.yaml")

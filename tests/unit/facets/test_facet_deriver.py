"""Tests for facet derivation."""

from fieldreg.facets import FacetCatalog, FacetDefinition, derive_facets
from fieldreg.registry import FieldRegistry


class TestDeriveFacets:
    """Tests for derive_facets()."""

    def test_facetable_fields_only(self, snapshot):
        """Should derive one facet per facetable field in declaration order."""
        facets = derive_facets(snapshot)

        assert [facet.field_path for facet in facets] == [
            "contract.ordering_agency",
            "contract.naics_codes",
            "document.document_date",
            "sam.agency",
            "salesforce.account_name",
        ]

    def test_alias_and_display_name(self, snapshot):
        """Should name aliased facets by alias and derive display names."""
        by_path = {facet.field_path: facet for facet in derive_facets(snapshot)}

        assert by_path["contract.ordering_agency"] == FacetDefinition(
            name="agency",
            field_path="contract.ordering_agency",
            display_name="Agency",
            facet_type="keyword",
            vocabulary="agencies",
        )
        assert by_path["contract.naics_codes"].display_name == "NAICS Codes"
        assert by_path["document.document_date"].display_name == "Document Date"
        assert by_path["salesforce.account_name"].display_name == "Account"

    def test_cached_per_registry(self, snapshot):
        """Should return the same tuple for the same registry."""
        assert derive_facets(snapshot) is derive_facets(snapshot.registry)

    def test_no_facetable_fields(self):
        """Should derive nothing from a registry without facetable fields."""
        registry, _ = FieldRegistry.load({"namespaces": {"ns": {"fields": {"x": {}}}}})

        assert derive_facets(registry) == ()


class TestFacetCatalog:
    """Tests for FacetCatalog."""

    def test_groups_by_name(self, snapshot):
        """Should group every field standing in for a facet."""
        catalog = FacetCatalog.from_source(snapshot)

        assert catalog.names() == ["agency", "naics_codes", "document_date"]
        assert catalog.field_paths("agency") == [
            "contract.ordering_agency",
            "sam.agency",
            "salesforce.account_name",
        ]
        assert len(catalog.get("agency")) == 3
        assert len(catalog) == 5

    def test_unknown_name(self, snapshot):
        """Should return empty results for unknown facet names."""
        catalog = FacetCatalog.from_source(snapshot)

        assert catalog.get("colour") == []
        assert catalog.field_paths("colour") == []
        assert "colour" not in catalog
        assert "agency" in catalog

    def test_validate_filters(self, snapshot):
        """Should report filter names that are not facets."""
        catalog = FacetCatalog.from_source(snapshot)

        assert catalog.validate_filters({"agency": "DHS", "colour": "red"}) == ["colour"]
        assert catalog.validate_filters(["naics_codes", "document_date"]) == []

    def test_as_dicts(self, snapshot):
        """Should serialize facets to plain dicts."""
        first = FacetCatalog.from_source(snapshot).as_dicts()[0]

        assert first == {
            "name": "agency",
            "field_path": "contract.ordering_agency",
            "display_name": "Agency",
            "facet_type": "keyword",
            "vocabulary": "agencies",
        }

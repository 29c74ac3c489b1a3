"""Pytest configuration and fixtures."""

import copy

import pytest

from fieldreg.registry import FieldRegistry, RegistrySnapshot, build_snapshot
from fieldreg.taxonomy import TaxonomyIndex


TAXONOMY_TREE = {
    "domains": [
        {
            "name": "Federal Acquisition",
            "categories": [
                {
                    "name": "Pre-Solicitation Notices",
                    "types": ["Sources Sought Notice", "Request for Information"],
                },
                {
                    "name": "Contract Awards",
                    "types": ["Task Order", {"name": "Contract Award"}],
                },
            ],
        },
        {
            "name": "Corporate",
            "categories": [
                {"name": "Proposals", "types": ["Technical Proposal"]},
            ],
        },
    ],
}


FIELD_DEFINITIONS = {
    "namespaces": {
        "contract": {
            "description": "Contract vehicle metadata",
            "fields": {
                "contract_number": {
                    "type": "string",
                    "description": "Contract or order number (PIID)",
                    "extraction_profiles": {
                        "Task Order": {"requirement": "expected"},
                        "Contract Award": {
                            "requirement": "required",
                            "extraction_hints": ["Look for the PIID near the header"],
                        },
                    },
                },
                "ordering_agency": {
                    "type": "string",
                    "vocabulary": "agencies",
                    "facetable": True,
                    "facet_type": "keyword",
                    "facet_alias": "agency",
                    "extraction_profiles": {
                        "Task Order": {
                            "requirement": "required",
                            "extraction_hints": ["The agency issuing the order"],
                        },
                    },
                    "source_overrides": {
                        "sam_notice": {"field": "sam.agency", "reconciliation": "source_wins"},
                    },
                },
                "naics_codes": {
                    "type": "list",
                    "facetable": True,
                    "facet_type": "keyword",
                    "display_name": "NAICS Codes",
                    "extraction_profiles": ["Task Order", "Sources Sought Notice"],
                    "source_overrides": {
                        "sam_notice": {"field": "sam.naics", "reconciliation": "merge"},
                    },
                },
                "period_of_performance": {
                    "type": "string",
                    "extraction_profiles": {"Task Order": {"requirement": "optional"}},
                    "source_overrides": {
                        "sam_notice": {
                            "field": "sam.period",
                            "reconciliation": "extracted_wins",
                        },
                    },
                },
            },
        },
        "document": {
            "fields": {
                "summary": {
                    "type": "string",
                    "extraction_profiles": "__common__",
                },
                "document_date": {
                    "type": "date",
                    "facetable": True,
                    "facet_type": "date",
                    "extraction_profiles": {
                        "__common__": {
                            "requirement": "required",
                            "extraction_hints": ["Prefer the signature date"],
                        },
                    },
                },
            },
        },
        "sam": {
            "fields": {
                "agency": {
                    "type": "string",
                    "vocabulary": "agencies",
                    "facetable": True,
                    "facet_type": "keyword",
                    "facet_alias": "agency",
                },
                "naics": {"type": "list"},
                "period": {"type": "string"},
            },
        },
        "salesforce": {
            "fields": {
                "account_name": {
                    "type": "string",
                    "facetable": True,
                    "facet_type": "keyword",
                    "facet_alias": "agency",
                    "display_name": "Account",
                },
            },
        },
    },
    "vocabularies": {
        "agencies": {
            "values": [
                "Department of Homeland Security",
                "Department of Defense",
                "General Services Administration",
            ],
            "aliases": {
                "Dept of Homeland Security": "Department of Homeland Security",
                "DHS": "Department of Homeland Security",
                "DoD": "Department of Defense",
                "GSA": "General Services Administration",
            },
            "fuzzy": True,
        },
    },
}


@pytest.fixture
def taxonomy_tree() -> dict:
    """Provide a fresh copy of the sample taxonomy tree."""
    return copy.deepcopy(TAXONOMY_TREE)


@pytest.fixture
def field_definitions() -> dict:
    """Provide a fresh copy of the sample field definitions."""
    return copy.deepcopy(FIELD_DEFINITIONS)


@pytest.fixture
def taxonomy(taxonomy_tree: dict) -> TaxonomyIndex:
    """Provide a TaxonomyIndex built from the sample tree."""
    return TaxonomyIndex.build(taxonomy_tree)


@pytest.fixture
def registry(field_definitions: dict) -> FieldRegistry:
    """Provide a FieldRegistry loaded from the sample definitions."""
    registry, issues = FieldRegistry.load(field_definitions)
    assert issues == []
    return registry


@pytest.fixture
def snapshot(taxonomy_tree: dict, field_definitions: dict) -> RegistrySnapshot:
    """Provide a strictly validated snapshot of the sample inputs."""
    return build_snapshot(taxonomy_tree, field_definitions, "strict")

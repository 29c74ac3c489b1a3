"""Domain → Category → Type taxonomy for document classification.

Provides reverse lookup from a leaf type label to its domain and category,
and materialized slug paths used for hierarchical filtering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping

from fieldreg.core.exceptions import TaxonomyError
from fieldreg.core.types import ClassificationResult
from fieldreg.utils.files import read_structured_file

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Convert a taxonomy name to a path segment.

    Lowercases the text, replaces each run of non-alphanumeric
    characters with a single underscore, and strips leading and trailing
    underscores, so "Task Order (TO)" becomes "task_order_to".

    Example:
        slugify("Pre-Solicitation Notices")  # "pre_solicitation_notices"
    """
    return _SLUG_PATTERN.sub("_", text.lower()).strip("_")


@dataclass(frozen=True)
class TaxonomyNode:
    """A leaf of the taxonomy.

    Attributes:
        domain: Top-level domain name (e.g., "Federal Acquisition").
        category: Category within the domain.
        label: Leaf type label; unique across the whole taxonomy.
    """

    domain: str
    category: str
    label: str


class TaxonomyIndex:
    """Reverse index over a Domain → Category → Type hierarchy.

    Example:
        index = TaxonomyIndex.build({
            "Federal Acquisition": {
                "Pre-Solicitation Notices": ["Sources Sought Notice"],
            },
        })

        index.lookup("Sources Sought Notice")
        # ("Federal Acquisition", "Pre-Solicitation Notices")

        index.path("Sources Sought Notice")
        # "federal_acquisition/pre_solicitation_notices/sources_sought_notice"
    """

    def __init__(self, nodes: list[TaxonomyNode]):
        """Initialize the index from leaf nodes.

        Use build() to construct from a raw tree.

        Args:
            nodes: Leaf nodes in declaration order.

        Raises:
            TaxonomyError: If a leaf label appears more than once.
        """
        self._nodes: tuple[TaxonomyNode, ...] = tuple(nodes)
        self._by_label: dict[str, TaxonomyNode] = {}
        for node in self._nodes:
            existing = self._by_label.get(node.label)
            if existing is not None:
                raise TaxonomyError(
                    f"Duplicate leaf label {node.label!r} under "
                    f"{existing.domain}/{existing.category} and "
                    f"{node.domain}/{node.category}"
                )
            self._by_label[node.label] = node
        self._labels = frozenset(self._by_label)

    @classmethod
    def build(cls, tree: Mapping[str, Any]) -> "TaxonomyIndex":
        """Build an index by walking a taxonomy tree depth-first.

        Two shapes are accepted:

            {"domains": [{"name": ..., "categories": [
                {"name": ..., "types": ["Label", {"name": "Label"}]}]}]}

            {"Domain": {"Category": ["Label", ...]}}

        Args:
            tree: Parsed taxonomy structure.

        Returns:
            A new TaxonomyIndex.

        Raises:
            TaxonomyError: If the tree is malformed or labels repeat.
        """
        if not isinstance(tree, Mapping):
            raise TaxonomyError(f"Taxonomy must be a mapping, got {type(tree).__name__}")

        if "domains" in tree:
            nodes = list(_walk_declared(tree["domains"]))
        else:
            nodes = list(_walk_nested(tree))
        return cls(nodes)

    def lookup(self, label: str | None) -> tuple[str, str] | None:
        """Get the (domain, category) pair for a leaf label.

        Returns:
            The pair, or None for unknown labels.
        """
        node = self._by_label.get(label) if label else None
        if node is None:
            return None
        return node.domain, node.category

    def path(self, label: str | None) -> str | None:
        """Get the materialized slug path for a leaf label.

        Returns:
            "domain/category/label" slugs joined with "/", or None for unknown labels.
        """
        node = self._by_label.get(label) if label else None
        if node is None:
            return None
        return "/".join(slugify(part) for part in (node.domain, node.category, node.label))

    def classify(self, label: str | None) -> ClassificationResult | None:
        """Resolve a label into a full classification result."""
        node = self._by_label.get(label) if label else None
        if node is None:
            return None
        return ClassificationResult(
            label=node.label,
            domain=node.domain,
            category=node.category,
            path=self.path(node.label),
        )

    def all_leaf_labels(self) -> frozenset[str]:
        """Get every leaf label in the taxonomy."""
        return self._labels

    def nodes(self) -> tuple[TaxonomyNode, ...]:
        """Get all leaf nodes in declaration order."""
        return self._nodes

    def domains(self) -> list[str]:
        """Get domain names in declaration order."""
        seen: dict[str, None] = {}
        for node in self._nodes:
            seen.setdefault(node.domain, None)
        return list(seen)

    def labels_in(self, domain: str, category: str | None = None) -> list[str]:
        """Get leaf labels under a domain, optionally narrowed to a category."""
        return [
            node.label
            for node in self._nodes
            if node.domain == domain and (category is None or node.category == category)
        ]

    def to_tree(self) -> dict[str, dict[str, list[str]]]:
        """Render the index back into the nested mapping shape."""
        tree: dict[str, dict[str, list[str]]] = {}
        for node in self._nodes:
            tree.setdefault(node.domain, {}).setdefault(node.category, []).append(node.label)
        return tree

    def __contains__(self, label: object) -> bool:
        return label in self._by_label

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[TaxonomyNode]:
        return iter(self._nodes)


def _name_of(entry: Any, what: str) -> str:
    if isinstance(entry, str):
        name = entry
    elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
        name = entry["name"]
    else:
        raise TaxonomyError(f"Malformed {what} entry: {entry!r}")
    name = name.strip()
    if not name:
        raise TaxonomyError(f"Empty {what} name")
    return name


def _walk_declared(domains: Any) -> Iterator[TaxonomyNode]:
    if not isinstance(domains, list):
        raise TaxonomyError("'domains' must be a list")
    for domain_entry in domains:
        domain = _name_of(domain_entry, "domain")
        categories = domain_entry.get("categories", []) if isinstance(domain_entry, dict) else []
        if not isinstance(categories, list):
            raise TaxonomyError(f"'categories' of domain {domain!r} must be a list")
        for category_entry in categories:
            category = _name_of(category_entry, "category")
            types = category_entry.get("types", []) if isinstance(category_entry, dict) else []
            if not isinstance(types, list):
                raise TaxonomyError(f"'types' of category {category!r} must be a list")
            for type_entry in types:
                yield TaxonomyNode(domain, category, _name_of(type_entry, "type"))


def _walk_nested(tree: Mapping[str, Any]) -> Iterator[TaxonomyNode]:
    for domain, categories in tree.items():
        domain = _name_of(domain, "domain")
        if not isinstance(categories, dict):
            raise TaxonomyError(f"Domain {domain!r} must map category names to label lists")
        for category, labels in categories.items():
            category = _name_of(category, "category")
            if not isinstance(labels, list):
                raise TaxonomyError(f"Category {category!r} must hold a list of labels")
            for label in labels:
                yield TaxonomyNode(domain, category, _name_of(label, "type"))


def read_taxonomy_tree(path: Path | str) -> dict[str, Any]:
    """Read a raw taxonomy tree from a YAML or JSON file.

    Args:
        path: Path to the taxonomy file.

    Returns:
        The tree, unwrapped from a top-level "taxonomy" key if present.

    Raises:
        RegistryLoadError: If the file cannot be read or parsed.
    """
    data = read_structured_file(path) or {}
    # Support both wrapped and bare formats
    if isinstance(data, dict) and isinstance(data.get("taxonomy"), dict):
        data = data["taxonomy"]
    return data


def load_taxonomy(path: Path | str) -> TaxonomyIndex:
    """Load a taxonomy from a YAML or JSON file.

    Args:
        path: Path to the taxonomy file.

    Returns:
        Configured TaxonomyIndex instance.

    Raises:
        RegistryLoadError: If the file cannot be read or parsed.
        TaxonomyError: If the tree is malformed.
    """
    return TaxonomyIndex.build(read_taxonomy_tree(path))

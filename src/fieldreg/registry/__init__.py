"""Field registry: definitions, validation and snapshots.

Model:
- FieldDefinition, ProfileEntry, SourceOverride, FieldPath, Vocabulary
- CommonProfile / StructuredProfile: normalized extraction profiles

Registry:
- FieldRegistry: Loads and normalizes field definitions
- validate_registry: Cross-reference validation against a taxonomy
- load_field_definitions: Read definitions from YAML/JSON

Snapshots:
- RegistrySnapshot: Immutable taxonomy + registry bundle
- build_snapshot: Load, validate and apply the validation mode
- SnapshotStore: Atomic publication of snapshots
"""

from fieldreg.registry.model import (
    CommonProfile,
    ExtractionProfile,
    FieldDefinition,
    FieldPath,
    ProfileEntry,
    SourceOverride,
    StructuredProfile,
    Vocabulary,
)
from fieldreg.registry.registry import FieldRegistry, load_field_definitions
from fieldreg.registry.snapshot import RegistrySnapshot, SnapshotStore, build_snapshot
from fieldreg.registry.validation import validate_registry

__all__ = [
    # Model
    "CommonProfile",
    "ExtractionProfile",
    "FieldDefinition",
    "FieldPath",
    "ProfileEntry",
    "SourceOverride",
    "StructuredProfile",
    "Vocabulary",
    # Registry
    "FieldRegistry",
    "load_field_definitions",
    "validate_registry",
    # Snapshots
    "RegistrySnapshot",
    "SnapshotStore",
    "build_snapshot",
]

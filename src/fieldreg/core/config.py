"""Configuration management for fieldreg."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .types import ValidationMode


@dataclass
class RegistryConfig:
    """Where registry inputs come from and how strictly they are checked."""

    taxonomy_path: Path | None = None
    registry_path: Path | None = None
    validation_mode: ValidationMode = ValidationMode.LENIENT


@dataclass
class VocabularyConfig:
    """Vocabulary matching configuration."""

    # Used when a vocabulary does not declare its own threshold
    fuzzy_threshold: float = 0.85
    # Similarity scorer name, see fieldreg.vocabulary.similarity
    similarity: str = "sequence"


@dataclass
class ResolutionConfig:
    """Profile resolution configuration."""

    cache_size: int = 256


def parse_validation_mode(value: str | ValidationMode) -> ValidationMode:
    """Parse a validation mode from a string.

    Args:
        value: "strict", "lenient", or an existing ValidationMode.

    Returns:
        The matching ValidationMode.

    Raises:
        ConfigError: If the value is not a known mode.
    """
    if isinstance(value, ValidationMode):
        return value
    try:
        return ValidationMode(value.strip().lower())
    except ValueError:
        raise ConfigError(
            f"Unknown validation mode {value!r}; expected 'strict' or 'lenient'"
        ) from None


@dataclass
class Config:
    """Main configuration."""

    registry: RegistryConfig = field(default_factory=RegistryConfig)
    vocabulary: VocabularyConfig = field(default_factory=VocabularyConfig)
    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)

    @classmethod
    def from_env(cls, config: "Config | None" = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            config: Existing configuration to override; defaults to Config().
        """
        config = config or cls()

        if mode := os.environ.get("FIELDREG_VALIDATION_MODE"):
            config.registry.validation_mode = parse_validation_mode(mode)

        if path := os.environ.get("FIELDREG_TAXONOMY_PATH"):
            config.registry.taxonomy_path = Path(path)
        if path := os.environ.get("FIELDREG_REGISTRY_PATH"):
            config.registry.registry_path = Path(path)

        if threshold := os.environ.get("FIELDREG_FUZZY_THRESHOLD"):
            try:
                config.vocabulary.fuzzy_threshold = float(threshold)
            except ValueError:
                raise ConfigError(
                    f"FIELDREG_FUZZY_THRESHOLD must be a number, got {threshold!r}"
                ) from None
            if not 0.0 < config.vocabulary.fuzzy_threshold <= 1.0:
                raise ConfigError("FIELDREG_FUZZY_THRESHOLD must be in (0, 1]")

        if similarity := os.environ.get("FIELDREG_SIMILARITY"):
            config.vocabulary.similarity = similarity

        if cache_size := os.environ.get("FIELDREG_RESOLUTION_CACHE_SIZE"):
            try:
                config.resolution.cache_size = int(cache_size)
            except ValueError:
                raise ConfigError(
                    f"FIELDREG_RESOLUTION_CACHE_SIZE must be an integer, got {cache_size!r}"
                ) from None

        return config

    @classmethod
    def from_file(cls, path: Path | str) -> "Config":
        """Load configuration from a YAML file, then apply env overrides.

        Expected format:
            registry:
              taxonomy_path: config/taxonomy.yaml
              registry_path: config/fields.yaml
              validation_mode: strict
            vocabulary:
              fuzzy_threshold: 0.9
              similarity: token
            resolution:
              cache_size: 512

        Raises:
            ConfigError: If the file cannot be read or holds invalid values.
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        config = cls()
        _apply_registry(config.registry, data.get("registry") or {}, base=path.parent)
        _apply_section(config.vocabulary, data.get("vocabulary") or {})
        _apply_section(config.resolution, data.get("resolution") or {})

        threshold = config.vocabulary.fuzzy_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ConfigError(f"vocabulary.fuzzy_threshold must be a number, got {threshold!r}")
        if not 0.0 < threshold <= 1.0:
            raise ConfigError("vocabulary.fuzzy_threshold must be in (0, 1]")
        if isinstance(config.resolution.cache_size, bool) or not isinstance(
            config.resolution.cache_size, int
        ):
            raise ConfigError("resolution.cache_size must be an integer")
        return cls.from_env(config)

    @classmethod
    def from_env_or_file(cls) -> "Config":
        """Load from FIELDREG_CONFIG if set, else from the environment only."""
        if path := os.environ.get("FIELDREG_CONFIG"):
            return cls.from_file(path)
        return cls.from_env()


def _apply_registry(section: RegistryConfig, values: dict[str, Any], *, base: Path) -> None:
    # Relative paths resolve against the config file's directory
    for key in ("taxonomy_path", "registry_path"):
        if values.get(key):
            path = Path(values[key])
            setattr(section, key, path if path.is_absolute() else base / path)
    if "validation_mode" in values:
        section.validation_mode = parse_validation_mode(str(values["validation_mode"]))


def _apply_section(section: Any, values: dict[str, Any]) -> None:
    for key, value in values.items():
        if not hasattr(section, key):
            raise ConfigError(f"Unknown setting {type(section).__name__}.{key}")
        setattr(section, key, value)

"""Reading YAML and JSON definition files into plain structures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from fieldreg.core.exceptions import RegistryLoadError


def read_structured_file(path: Path | str) -> Any:
    """Read a YAML or JSON file.

    Files ending in ``.json`` are parsed as JSON; everything else is parsed
    as YAML (a superset of JSON).

    Args:
        path: File to read.

    Returns:
        The parsed document (dict, list, or scalar).

    Raises:
        RegistryLoadError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RegistryLoadError(str(path), str(e)) from e

    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RegistryLoadError(str(path), f"invalid document: {e}") from e

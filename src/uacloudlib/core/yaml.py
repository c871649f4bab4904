"""YAML configuration loading for the UA Cloud Library.

Uses ``yaml.safe_load`` so configuration files can never instantiate
arbitrary Python objects. Consumed by
[Pool.from_yaml()][uacloudlib.core.pool.Pool.from_yaml],
[AttributeStore.from_yaml()][uacloudlib.core.store.AttributeStore.from_yaml] and
[NodesetCatalog.from_yaml()][uacloudlib.catalog.service.NodesetCatalog.from_yaml].

Examples:
    ```python
    from uacloudlib.core.yaml import load_yaml

    config = load_yaml("config/catalog.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        Parsed configuration as a nested dictionary. Returns an empty dict
        if the file exists but contains no data.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid YAML or its top level
            is not a mapping.

    Warning:
        The returned dictionary is not validated. Pass it to a Pydantic
        model (e.g. [CatalogConfig][uacloudlib.catalog.configs.CatalogConfig])
        for schema validation.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, got {type(data).__name__}"
        )
    return data

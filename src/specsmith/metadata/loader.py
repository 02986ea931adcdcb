"""Load extracted metadata from a JSON or YAML file.

Expected layout::

    controllers: [ControllerMetadata, ...]
    models: [ModelMetadata, ...]
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from specsmith.errors import ConfigurationError
from .base import ControllerMetadata, ModelMetadata


def load_metadata(file_path: Path) -> tuple[list[ControllerMetadata], list[ModelMetadata]]:
    """Parse a metadata file into controllers and models, keeping file order."""
    text = file_path.read_text(encoding="utf-8")
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse metadata {file_path}: {e}") from e

    if not isinstance(doc, dict):
        raise ConfigurationError(f"Metadata {file_path} must be a mapping with 'controllers' and 'models'")

    try:
        controllers = [ControllerMetadata.model_validate(c) for c in doc.get("controllers") or []]
        models = [ModelMetadata.model_validate(m) for m in doc.get("models") or []]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid metadata in {file_path}: {e}") from e

    return controllers, models

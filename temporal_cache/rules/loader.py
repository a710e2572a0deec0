import logging
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from temporal_cache.rules.models import TemporalCacheRules

logger = logging.getLogger(__name__)

# First ```yaml ... ``` block of a markdown document
_YAML_FENCE_RE = re.compile(r"^\s*```yaml[^\n]*\n(.*?)^\s*```", re.MULTILINE | re.DOTALL)


def default_rules() -> TemporalCacheRules:
    """Fully defaulted configuration (used when no file is present)."""
    return TemporalCacheRules()


def _yaml_source(text: str) -> str:
    match = _YAML_FENCE_RE.search(text)
    return match.group(1) if match else text


def load_rules(path: Path) -> TemporalCacheRules:
    """
    Load and validate the temporal cache configuration file.

    The file is plain YAML, or markdown whose first yaml fence holds the
    settings. An empty document yields the defaults.

    Raises FileNotFoundError if the file is missing and ValueError if the
    YAML or the settings are invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    try:
        data = yaml.safe_load(_yaml_source(path.read_text()))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in configuration file: {e}") from e

    if data is None:
        logger.info("Configuration file %s is empty, using defaults.", path)
        return default_rules()

    try:
        return TemporalCacheRules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed:\n{e}") from e

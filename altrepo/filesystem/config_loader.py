"""Reader for the hand-authored config.json."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from altrepo.schemas.repository import RepositoryConfig

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def load_repository_config(config_path: Path) -> RepositoryConfig:
    """Load and validate config.json.

    Raises FileNotFoundError if the file is missing and ValueError if it is
    not valid JSON or does not match the repository schema.
    """
    if not config_path.is_file():
        msg = f"config.json not found at: {config_path}"
        raise FileNotFoundError(msg)

    raw = config_path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse {config_path}: {exc}"
        raise ValueError(msg) from exc

    try:
        config = RepositoryConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid repository configuration in {config_path}: {exc}"
        raise ValueError(msg) from exc

    logger.info("Loaded configuration for: %s (%d apps)", config.name, len(config.apps))
    return config

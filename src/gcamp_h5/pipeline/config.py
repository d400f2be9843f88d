"""
Configuration loading and validation for the export pipeline.

Uses Pydantic for schema validation.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from gcamp_h5.preprocess.behavior import DEFAULT_VELOCITY_FILTER_THRESHOLD
from gcamp_h5.utils.exceptions import ConfigurationError
from gcamp_h5.utils.hashing import hash_config


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ExportConfig(BaseModel):
    """Parameters of one export run."""

    path_h5: Optional[Path] = None
    path_data_dict_match: Optional[Path] = None
    n_recording: int = Field(default=1, ge=1)
    dict_key: str = Field(default="data_dict", min_length=1)
    velocity_filter: bool = True
    velocity_filter_threshold: float = Field(default=DEFAULT_VELOCITY_FILTER_THRESHOLD, ge=0)
    verbose: bool = False
    overwrite: bool = True

    @field_validator("path_h5", "path_data_dict_match", mode="before")
    @classmethod
    def convert_paths(cls, v):
        """Treat empty strings as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def file_attrs(self) -> Dict[str, Any]:
        """Parameters recorded as root attributes of the exported file."""
        return {
            "n_recording": self.n_recording,
            "dict_key": self.dict_key,
            "velocity_filter": self.velocity_filter,
            "velocity_filter_threshold": self.velocity_filter_threshold,
        }

    def params_hash(self) -> str:
        """Hash of the parameters that affect the exported arrays."""
        return hash_config(self.file_attrs())


# =============================================================================
# Configuration Loading Functions
# =============================================================================

def load_json_config(path: Path) -> Dict[str, Any]:
    """
    Load a JSON configuration file.

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")


def build_export_config(**kwargs: Any) -> ExportConfig:
    """
    Validate keyword parameters into an ExportConfig.

    Raises:
        ConfigurationError: If any value is invalid
    """
    try:
        return ExportConfig(**kwargs)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid export config: {e}") from e


def load_export_config(path: Union[str, Path]) -> ExportConfig:
    """
    Load export parameters from a JSON file.

    Example file:
        {"n_recording": 2, "dict_key": "combined_data_dict",
         "velocity_filter_threshold": 0.15}

    Raises:
        ConfigurationError: If the file is missing, not JSON, or invalid
    """
    path = Path(path)
    data = load_json_config(path)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Export config in {path} must be a JSON object")

    try:
        return ExportConfig(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid export config in {path}: {e}") from e

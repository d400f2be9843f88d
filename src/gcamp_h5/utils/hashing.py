"""
Configuration hashing utilities.

Used to stamp exported files with the parameters that produced them.
"""

import hashlib
import json
from typing import Any, Dict


def hash_config(config: Dict[str, Any], prefix: str = "sha256") -> str:
    """
    Produce deterministic hash of a configuration dictionary.

    Args:
        config: Configuration dictionary to hash (JSON-serializable; other
            values are stringified)
        prefix: Hash prefix (default: "sha256")

    Returns:
        Hash string in format "prefix:hash_value"

    Example:
        >>> hash_config({"n_recording": 2, "velocity_filter": True})
        'sha256:...'
    """
    serialized = json.dumps(config, sort_keys=True, separators=(",", ":"), default=str)
    hash_value = hashlib.sha256(serialized.encode()).hexdigest()[:16]
    return f"{prefix}:{hash_value}"


"""
Input validation utilities for the export pipeline.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from gcamp_h5.utils.exceptions import ConfigurationError


PICKLE_SUFFIXES = (".pkl", ".pickle")
HDF5_SUFFIXES = (".h5", ".hdf5")
INPUT_SUFFIXES = PICKLE_SUFFIXES + HDF5_SUFFIXES


def validate_path_exists(path: Union[str, Path], file_type: str = "file") -> Path:
    """
    Validate that a path exists.

    Args:
        path: Path to validate (string or Path object)
        file_type: Description of what the path should be (for error messages)

    Returns:
        Path object

    Raises:
        FileNotFoundError: If path does not exist
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"{file_type} not found: {path}")

    return path


def validate_input_suffix(
    path: Union[str, Path],
    allowed: Iterable[str] = INPUT_SUFFIXES,
) -> Path:
    """
    Validate that an input file has a supported extension.

    Raises:
        ConfigurationError: If the suffix is not one of ``allowed``
    """
    path = Path(path)
    allowed = tuple(allowed)

    if path.suffix.lower() not in allowed:
        raise ConfigurationError(
            f"Unsupported input file type '{path.suffix}' for {path}. "
            f"Expected one of: {', '.join(allowed)}"
        )

    return path


def derive_output_path(
    input_path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
) -> Path:
    """
    Resolve the HDF5 output path.

    Uses ``output_path`` if given, otherwise the input file's stem with an
    ``.h5`` suffix next to the input. HDF5 inputs get an ``_export`` suffix
    so the input is never overwritten.
    """
    if output_path is not None:
        return Path(output_path)

    input_path = Path(input_path)
    if input_path.suffix.lower() in HDF5_SUFFIXES:
        return input_path.with_name(f"{input_path.stem}_export.h5")
    return input_path.with_suffix(".h5")

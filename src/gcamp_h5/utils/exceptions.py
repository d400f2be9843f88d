"""
Exception hierarchy for the GCaMP export pipeline.

All custom exceptions inherit from GcampH5Error.
"""

from typing import Optional


class GcampH5Error(Exception):
    """
    Base exception for all export pipeline errors.

    All custom exceptions MUST inherit from this class.
    """
    pass


class ConfigurationError(GcampH5Error):
    """
    Invalid configuration or parameters.

    Raised when:
    - Export config values are out of range
    - Config file not found or malformed
    """
    pass


class DataLoadError(GcampH5Error):
    """
    Error loading an input mapping.

    Raised when:
    - Input file cannot be read
    - File format is corrupt or unsupported
    - Top-level payload is not a mapping
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.file_path = file_path
        self.original_error = original_error


class MissingInputError(GcampH5Error):
    """
    Required input not found in the data dictionary.

    Raised when:
    - The payload key (e.g. "data_dict") is absent from the input file
    - A key needed for traces, velocity or reversals is absent
    """

    def __init__(
        self,
        message: str,
        missing_input: Optional[str] = None,
    ):
        super().__init__(message)
        self.missing_input = missing_input


class ValidationError(GcampH5Error):
    """
    Data validation failed.

    Raised when:
    - A trace matrix is not 2-D
    - A sparse trace timepoint lies outside the recording
    - A signal has no valid samples to interpolate from
    """

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id
        self.field = field


class InvalidSegmentation(GcampH5Error):
    """
    Requested recording split is impossible.

    Raised when:
    - n_recording < 1 or n_recording > n_time
    - n_time is not divisible by n_recording
    """

    def __init__(
        self,
        message: str,
        n_time: Optional[int] = None,
        n_recording: Optional[int] = None,
    ):
        super().__init__(message)
        self.n_time = n_time
        self.n_recording = n_recording

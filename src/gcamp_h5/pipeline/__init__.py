"""
Pipeline orchestration module for the GCaMP export pipeline.

Provides:
    - export_recording_h5: data dict -> grouped HDF5 export
    - ExportConfig and JSON config loading
"""

from gcamp_h5.pipeline.export import (
    export_recording_h5,
    run_export,
    ExportResult,
    as_concrete_array,
    BEHAVIOR_FIELDS,
    TIMING_FIELDS,
)

from gcamp_h5.pipeline.config import (
    ExportConfig,
    build_export_config,
    load_export_config,
)

__all__ = [
    # Export
    "export_recording_h5",
    "run_export",
    "ExportResult",
    "as_concrete_array",
    "BEHAVIOR_FIELDS",
    "TIMING_FIELDS",
    # Config
    "ExportConfig",
    "build_export_config",
    "load_export_config",
]

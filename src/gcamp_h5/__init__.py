"""
GCaMP HDF5 Export

Converts a whole-brain calcium-imaging recording bundle (neuron traces, sparse
per-ROI activity/marker traces, behavioral channels) into a dense, grouped
HDF5 file for downstream analysis tools.

Architecture:
    - io/         : Input mapping loader and HDF5 output store
    - preprocess/ : Trace reconstruction, NaN filtering, normalization,
                    velocity filtering, reversal events, segmentation
    - pipeline/   : Export configuration and orchestration
    - utils/      : Shared utilities (logging, hashing, validation, exceptions)
"""

__version__ = "0.1.0"
__author__ = "Flavell Lab"

# Users should import from subpackages directly:
#   from gcamp_h5.pipeline import export_recording_h5
#   from gcamp_h5.preprocess import remove_nan_neurons

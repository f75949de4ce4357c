# gpslife/errors

"""
gpslife.errors

Central exception hierarchy for GPSlife.

  - Modules raise specific, meaningful errors.
  - Callers can catch GPSlifeError (broad) or specific subclasses (narrow).
  - Nothing here is fatal to the tracker or the timeline pipeline: the core
    converts these into per-sample outcomes or empty results.
"""


class GPSlifeError(RuntimeError):
    """Base class for all GPSlife runtime errors."""


# ---- Sample errors -----------------------------

class SampleError(GPSlifeError):
    """Errors related to a single position sample."""

class InvalidSampleError(SampleError):
    """Sample has non-finite or out-of-range coordinates or accuracy."""


# ---- Tracker errors ----------------------------

class TrackerError(GPSlifeError):
    """Errors in the live tracking state machine."""

class InvalidStateTransitionError(TrackerError):
    """Operation is not applicable in the tracker's current state."""


# ---- Configuration errors ----------------------

class ConfigError(GPSlifeError):
    """Configuration could not be parsed or contains unknown/invalid values."""


# ---- Format errors -----------------------------

class FormatError(GPSlifeError):
    """Errors reading or writing export formats."""

class InvalidGpxError(FormatError):
    """GPX file could not be parsed or did not contain expected data structures."""

class UnsupportedFormatError(FormatError):
    """Requested export/import format is not supported."""

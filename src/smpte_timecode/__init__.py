"""SMPTE timecode value objects."""

from .timecode import (
    DEFAULT_FRAMERATE,
    DROP_FRAME_FRAMERATES,
    SUPPORTED_FRAMERATES,
    ConfigurationError,
    ConstructionError,
    FormatError,
    RangeError,
    Timecode,
    TimecodeBuilder,
    TimecodeError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_FRAMERATE",
    "DROP_FRAME_FRAMERATES",
    "SUPPORTED_FRAMERATES",
    "ConfigurationError",
    "ConstructionError",
    "FormatError",
    "RangeError",
    "Timecode",
    "TimecodeBuilder",
    "TimecodeError",
    "ValidationError",
]

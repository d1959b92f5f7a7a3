"""Error types raised by the matching pipeline."""


class RefMatchError(Exception):
    """Base class for all refmatch errors."""


class DecodeError(RefMatchError):
    """Input bytes or pixels could not be turned into an image."""


class EngineNotReadyError(RefMatchError):
    """The reference catalog or vision engine is not available."""


class InsufficientFeaturesError(RefMatchError):
    """An image produced no keypoints, so it cannot be compared."""


class NativeResourceError(RefMatchError):
    """Allocating or releasing a vision engine resource failed."""


class ConfigError(RefMatchError, ValueError):
    """Configuration value is missing or out of range."""

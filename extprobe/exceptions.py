"""Custom exceptions for extprobe."""


class ExtProbeError(Exception):
    """Base exception for all extprobe errors."""


class DatasetLoadError(ExtProbeError):
    """Raised when the candidate list or the metadata map cannot be loaded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Unable to load dataset from {source}: {reason}")


class ScanStateError(ExtProbeError):
    """Raised on an illegal scan state transition (e.g. running a scan twice)."""


class ConfigError(ExtProbeError, ValueError):
    """Raised when scan configuration values are out of range."""


class LoaderStartError(ExtProbeError):
    """Raised when a resource loader cannot be started (e.g. the browser fails to launch)."""

"""extprobe: detect installed browser extensions by probing their web-accessible resources."""

__version__ = "0.1.0"

from extprobe.config import ScanConfig
from extprobe.engine import (
    BatchScheduler,
    ExtensionScan,
    HttpxResourceLoader,
    ProbeStrategy,
    ResourceLoader,
    ResultAggregator,
    ScanListener,
)
from extprobe.exceptions import ConfigError, DatasetLoadError, ExtProbeError, ScanStateError
from extprobe.models import (
    Candidate,
    Detection,
    MetadataRecord,
    ScanState,
    ScanStatus,
    StatusUpdate,
)

__all__ = [
    "BatchScheduler",
    "Candidate",
    "ConfigError",
    "DatasetLoadError",
    "Detection",
    "ExtProbeError",
    "ExtensionScan",
    "HttpxResourceLoader",
    "MetadataRecord",
    "ProbeStrategy",
    "ResourceLoader",
    "ResultAggregator",
    "ScanConfig",
    "ScanListener",
    "ScanState",
    "ScanStatus",
    "ScanStateError",
    "StatusUpdate",
]

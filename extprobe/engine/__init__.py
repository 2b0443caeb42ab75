"""Detection engine — probe strategy, batch scheduler and result aggregation."""

from extprobe.engine.aggregator import ResultAggregator, ScanListener
from extprobe.engine.loaders import HttpxResourceLoader, ImageLoadError, ResourceLoader
from extprobe.engine.probe import ProbeStrategy, build_url, is_image_path
from extprobe.engine.runner import ExtensionScan, default_dataset_loader
from extprobe.engine.scheduler import BatchScheduler

__all__ = [
    "BatchScheduler",
    "ExtensionScan",
    "HttpxResourceLoader",
    "ImageLoadError",
    "ProbeStrategy",
    "ResourceLoader",
    "ResultAggregator",
    "ScanListener",
    "build_url",
    "default_dataset_loader",
    "is_image_path",
]

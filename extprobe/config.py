"""Scan configuration: defaults, environment overrides and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass

from extprobe.exceptions import ConfigError

DEFAULT_TIMEOUT = 2.5  # seconds per probe
DEFAULT_CONCURRENCY = 12
DEFAULT_BATCH_DELAY = 0.08  # seconds between batches
DEFAULT_URL_TEMPLATE = "chrome-extension://{id}/{path}"
DEFAULT_CANDIDATES_SOURCE = "extension_ids.json"
DEFAULT_METADATA_SOURCE = "extensions_metadata.json"


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


@dataclass
class ScanConfig:
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY
    batch_delay: float = DEFAULT_BATCH_DELAY
    url_template: str = DEFAULT_URL_TEMPLATE
    candidates_source: str = DEFAULT_CANDIDATES_SOURCE
    metadata_source: str = DEFAULT_METADATA_SOURCE

    @classmethod
    def from_env(cls) -> ScanConfig:
        """Build a config from ``EXTPROBE_*`` environment variables.

        Unset variables fall back to the module defaults.
        """
        try:
            config = cls(
                timeout=_env_float("EXTPROBE_TIMEOUT", DEFAULT_TIMEOUT),
                concurrency=_env_int("EXTPROBE_CONCURRENCY", DEFAULT_CONCURRENCY),
                batch_delay=_env_float("EXTPROBE_BATCH_DELAY", DEFAULT_BATCH_DELAY),
                url_template=os.environ.get("EXTPROBE_URL_TEMPLATE", DEFAULT_URL_TEMPLATE),
                candidates_source=os.environ.get(
                    "EXTPROBE_CANDIDATES", DEFAULT_CANDIDATES_SOURCE
                ),
                metadata_source=os.environ.get("EXTPROBE_METADATA", DEFAULT_METADATA_SOURCE),
            )
        except ValueError as exc:
            raise ConfigError(f"invalid EXTPROBE_* environment value: {exc}") from exc
        config.validate()
        return config

    def validate(self) -> None:
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        if self.batch_delay < 0:
            raise ConfigError(f"batch_delay must be >= 0, got {self.batch_delay}")
        if "{id}" not in self.url_template or "{path}" not in self.url_template:
            raise ConfigError(
                f"url_template must contain {{id}} and {{path}}: {self.url_template!r}"
            )

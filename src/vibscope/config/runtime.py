"""Runtime configuration for the analysis pipeline and API client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AnalysisConfig:
    """
    Tuning knobs for spectra, peak reporting, severity and API access.

    ``fmax``/``lor``/``g_scale`` are only fallbacks; a payload or explicit
    sensor config takes precedence.
    """

    # Sensor defaults
    fmax: float = 10000.0
    lor: int = 6400
    g_scale: int = 16

    # Spectrum shaping
    dc_skip_bins: int = 3
    detail_peaks: int = 5
    chart_peaks: int = 10
    summary_peaks: int = 1
    peak_bucket_hz: Optional[float] = None
    min_peak_height: Optional[float] = None

    # Severity (mm/s) and G status thresholds
    velocity_warning: float = 2.0
    velocity_concern: float = 2.5
    velocity_critical: float = 3.0
    g_warning: float = 0.5
    g_critical: float = 0.8

    # API access
    request_ttl_seconds: float = 0.5
    request_cache_size: int = 64
    http_timeout_seconds: float = 10.0

    def sanitized(self) -> AnalysisConfig:
        """Return a copy with limits applied."""
        bucket = self.peak_bucket_hz
        if bucket is not None:
            bucket = max(0.0, float(bucket))
        min_height = self.min_peak_height
        if min_height is not None:
            min_height = float(min_height)
        warning = max(0.0, float(self.velocity_warning))
        concern = max(warning, float(self.velocity_concern))
        g_warning = max(0.0, float(self.g_warning))
        return AnalysisConfig(
            fmax=max(1.0, float(self.fmax)),
            lor=max(1, int(self.lor)),
            g_scale=int(self.g_scale),
            dc_skip_bins=max(0, int(self.dc_skip_bins)),
            detail_peaks=max(0, int(self.detail_peaks)),
            chart_peaks=max(0, int(self.chart_peaks)),
            summary_peaks=max(0, int(self.summary_peaks)),
            peak_bucket_hz=bucket,
            min_peak_height=min_height,
            velocity_warning=warning,
            velocity_concern=concern,
            velocity_critical=max(concern, float(self.velocity_critical)),
            g_warning=g_warning,
            g_critical=max(g_warning, float(self.g_critical)),
            request_ttl_seconds=max(0.0, float(self.request_ttl_seconds)),
            request_cache_size=max(1, int(self.request_cache_size)),
            http_timeout_seconds=max(0.1, float(self.http_timeout_seconds)),
        )


_FIELD_NAMES = frozenset(f.name for f in fields(AnalysisConfig))


def config_from_mapping(data: Mapping[str, Any] | None) -> AnalysisConfig:
    """
    Build :class:`AnalysisConfig` from ``data``.

    Settings may sit at the top level or inside an ``analysis:`` block; the
    block wins when both name the same key. Unknown keys inside ``analysis:``
    are logged and ignored, other top-level keys belong to other tools and
    are skipped silently.
    """
    if not data:
        return AnalysisConfig()

    values = {key: data[key] for key in data.keys() & _FIELD_NAMES}
    block = data.get("analysis")
    if block is not None:
        if not isinstance(block, Mapping):
            raise ValueError(f"'analysis' must be a mapping, got {type(block).__name__}")
        unknown = sorted(str(key) for key in block.keys() - _FIELD_NAMES)
        if unknown:
            logger.warning("Ignoring unknown analysis settings: %s", ", ".join(unknown))
        values.update((key, block[key]) for key in block.keys() & _FIELD_NAMES)
    return AnalysisConfig(**values).sanitized()


def load_config(path: str | Path | None) -> AnalysisConfig:
    """
    Load analysis settings from a YAML file.

    ``None`` or a missing file gives the defaults.
    """
    if path is None:
        return AnalysisConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        logger.info("Config %s not found, using defaults", cfg_path)
        return AnalysisConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = ["AnalysisConfig", "config_from_mapping", "load_config"]

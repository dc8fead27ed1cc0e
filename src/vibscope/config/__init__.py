"""Configuration objects and helpers for vibscope.

:mod:`runtime` loads an optional YAML file into :class:`AnalysisConfig`, which
carries sensor fallbacks, peak-reporting limits, severity thresholds and API
client settings.
"""

from .runtime import AnalysisConfig, config_from_mapping, load_config

__all__ = ["AnalysisConfig", "config_from_mapping", "load_config"]

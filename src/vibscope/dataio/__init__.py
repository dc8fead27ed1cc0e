"""Payload parsing: turn sensor API readings into per-axis inputs."""

from .payload import load_payload, resolve_axis_source, rms_overrides, sensor_config_from_payload

__all__ = ["load_payload", "resolve_axis_source", "rms_overrides", "sensor_config_from_payload"]

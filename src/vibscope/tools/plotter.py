#!/usr/bin/env python3
"""
Matplotlib viewer for one axis of a sensor reading.

The reading comes either from a JSON file saved from the API (``--file``) or
straight from the REST API (``--sensor-id`` with ``--base-url``). The chosen
axis is run through :func:`vibscope.core.pipeline.prepare_chart_data` and shown
as two stacked plots:

  * the time waveform with its RMS/peak/peak-to-peak summary, and
  * the spectrum with the detected peaks marked.

With ``--output`` the figure is written to disk instead of opening a window.
``--follow`` re-fetches the reading from the API every ``--interval`` seconds.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Sequence

import matplotlib.pyplot as plt
import numpy as np
import yaml
from matplotlib.animation import FuncAnimation

from ..config.runtime import AnalysisConfig, load_config
from ..core.models import MeasurementUnit, SensorConfig
from ..core.pipeline import ChartResult, prepare_chart_data
from ..dataio.payload import (
    load_payload,
    resolve_axis_source,
    rms_overrides,
    sensor_config_from_payload,
)
from ..remote.api_client import SensorApiClient, SensorApiError
from ..remote.request_cache import RequestCoalescer
from ..sensors.accelerometer import AXES

logger = logging.getLogger(__name__)

UNIT_CHOICES = {
    "g": MeasurementUnit.ACCELERATION_G,
    "mm/s2": MeasurementUnit.ACCELERATION_MM_S2,
    "velocity": MeasurementUnit.VELOCITY_MM_S,
}
AXIS_NAMES = {"h": "Horizontal", "v": "Vertical", "a": "Axial"}


# --------------------------------------------------------------------------- # helpers
def chart_for_payload(
    payload: Dict[str, Any],
    axis: str,
    unit: MeasurementUnit,
    analysis: AnalysisConfig,
) -> tuple[ChartResult, SensorConfig]:
    """Resolve ``axis`` from ``payload`` and run it through the chart pipeline."""
    sensor = sensor_config_from_payload(
        payload, SensorConfig(analysis.fmax, analysis.lor, analysis.g_scale)
    )
    source = resolve_axis_source(payload, axis, sensor.lor)
    result = prepare_chart_data(
        source,
        unit,
        sensor,
        rms_override=rms_overrides(payload, axis).get(unit),
        analysis=analysis,
    )
    return result, sensor


def _draw(axes, result: ChartResult, axis: str, sensor: SensorConfig) -> None:
    ax_time, ax_freq = axes
    ax_time.clear()
    ax_freq.clear()

    title = f"{AXIS_NAMES.get(axis, axis)} axis - {result.y_axis_label}"
    if not result.has_data:
        ax_time.set_title(f"{title} (no data)")
        ax_time.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax_time.transAxes)
        return

    td = result.time_data
    t = np.linspace(0.0, sensor.total_time, td.series.size) if td.series.size > 1 else [0.0]
    ax_time.plot(t, td.series, linewidth=0.8)
    ax_time.set_title(
        f"{title}  RMS {td.rms_value}  Peak {td.peak_value}  P-P {td.peak_to_peak_value}"
    )
    ax_time.set_xlabel("Time [s]")
    ax_time.set_ylabel(result.y_axis_label)

    fd = result.freq_data
    freqs = np.array([float(label) for label in fd.labels], dtype=float)
    ax_freq.plot(freqs, fd.series, linewidth=0.8)
    for p in result.chart_peaks:
        ax_freq.plot(p.frequency_hz, p.magnitude, "o", color="red")
        ax_freq.annotate(
            f"{p.frequency_hz:.1f} Hz",
            (p.frequency_hz, p.magnitude),
            textcoords="offset points",
            xytext=(0, 6),
            ha="center",
            fontsize=7,
        )
    ax_freq.set_xlabel("Frequency [Hz]")
    ax_freq.set_ylabel(result.y_axis_label)


def build_figure(result: ChartResult, axis: str, sensor: SensorConfig):
    """Return ``(fig, axes)`` with the time and frequency plots of ``result``."""
    fig, axes = plt.subplots(2, 1, figsize=(10, 7))
    _draw(axes, result, axis, sensor)
    fig.tight_layout()
    return fig, axes


def _payload_source(args: argparse.Namespace, analysis: AnalysisConfig) -> Callable[[], Dict[str, Any]]:
    if args.file:
        path = Path(args.file).expanduser().resolve()
        return lambda: load_payload(path)

    client = SensorApiClient(
        args.base_url,
        token=args.token or os.getenv("VIBSCOPE_API_TOKEN"),
        timeout=analysis.http_timeout_seconds,
        coalescer=RequestCoalescer(analysis.request_ttl_seconds, analysis.request_cache_size),
    )
    return lambda: client.fetch_last_data(args.sensor_id, args.datetime)


# --------------------------------------------------------------------------- # CLI
def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Plot the waveform and spectrum of one sensor axis."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-f", "--file", type=str, help="JSON reading saved from the API.")
    source.add_argument("--sensor-id", type=str, help="Fetch the latest reading of this sensor.")
    parser.add_argument(
        "--base-url",
        type=str,
        default=os.getenv("VIBSCOPE_API_URL"),
        help="API base URL (default: $VIBSCOPE_API_URL).",
    )
    parser.add_argument("--token", type=str, help="Bearer token (default: $VIBSCOPE_API_TOKEN).")
    parser.add_argument("--datetime", type=str, help="Fetch the reading closest to this time.")
    parser.add_argument("-c", "--config", type=str, help="YAML analysis settings.")
    parser.add_argument("-a", "--axis", choices=list(AXES), default="h")
    parser.add_argument(
        "-u",
        "--unit",
        choices=list(UNIT_CHOICES),
        default="velocity",
        help="Measurement unit (default: velocity).",
    )
    parser.add_argument("-o", "--output", type=str, help="Save the figure here instead of showing it.")
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Re-fetch from the API every --interval seconds.",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=5.0,
        help="Refresh interval in seconds for --follow (default: 5.0).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.sensor_id and not args.base_url:
        parser.error("--sensor-id needs --base-url or $VIBSCOPE_API_URL")
    if args.follow and args.file:
        parser.error("--follow only works with --sensor-id")

    try:
        analysis = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("Cannot load config %s: %s", args.config, exc)
        return 2

    unit = UNIT_CHOICES[args.unit]
    fetch = _payload_source(args, analysis)
    try:
        payload = fetch()
    except (OSError, ValueError, SensorApiError) as exc:
        logger.error("Cannot load reading: %s", exc)
        return 1

    result, sensor = chart_for_payload(payload, args.axis, unit, analysis)
    if not result.has_data:
        logger.warning("Axis %s has no data in this reading", args.axis)
    fig, axes = build_figure(result, args.axis, sensor)

    if args.output:
        out_path = Path(args.output).expanduser()
        fig.savefig(out_path)
        plt.close(fig)
        logger.info("Saved %s", out_path)
        return 0

    if args.follow:

        def _update(_frame):
            try:
                latest, latest_sensor = chart_for_payload(fetch(), args.axis, unit, analysis)
            except SensorApiError as exc:
                logger.warning("Refresh failed: %s", exc)
                return []
            _draw(axes, latest, args.axis, latest_sensor)
            return []

        fig.canvas.manager.set_window_title(f"vibscope live - sensor {args.sensor_id}")
        # Keep a reference or the animation is garbage collected.
        fig._vibscope_animation = FuncAnimation(
            fig, _update, interval=args.interval * 1000.0, blit=False
        )

    try:
        plt.show()
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

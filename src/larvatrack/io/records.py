"""Text formatting of history records for downstream data logging.

One comma-separated line per analyzed frame. Angles are written in degrees,
positions in image pixels, stage positions in raw ticks. The legend
enumerates the columns.
"""

from __future__ import annotations

import math

from larvatrack.core.types import HistoryRecord

__all__ = ["data_legend", "format_record"]

_LEGEND = (
    "Sample index",
    "Sample time (seconds)",
    "Head x (pixels)",
    "Head y (pixels)",
    "Neck x (pixels)",
    "Neck y (pixels)",
    "Tail x (pixels)",
    "Tail y (pixels)",
    "Skeleton length (pixels)",
    "Centroid x (pixels)",
    "Centroid y (pixels)",
    "Head to body angle (degrees)",
    "Tail bearing angle (degrees)",
    "Stage position x (ticks)",
    "Stage position y (ticks)",
)


def data_legend() -> str:
    """Numbered description of the columns written by :func:`format_record`."""
    lines = [f"{i}: {name}" for i, name in enumerate(_LEGEND, start=1)]
    lines.append(
        f"{len(_LEGEND) + 1}+: 4*N Fourier coefficients (ax[0],bx[0],ay[0],by[0],ax[1]...)"
    )
    return "\n".join(lines) + "\n"


def format_record(record: HistoryRecord) -> str:
    """Return one newline-terminated, comma-separated data line."""
    fields = [
        f"{record.frame_index:d}",
        f"{record.time_ms / 1000.0:.3f}",
        f"{record.head[0]:.2f}",
        f"{record.head[1]:.2f}",
        f"{record.neck[0]:.2f}",
        f"{record.neck[1]:.2f}",
        f"{record.tail[0]:.2f}",
        f"{record.tail[1]:.2f}",
        f"{record.skeleton.length:.2f}",
        f"{record.centroid[0]:.2f}",
        f"{record.centroid[1]:.2f}",
        f"{math.degrees(record.angles.head_to_body):.2f}",
        f"{math.degrees(record.angles.tail_bearing):.2f}",
        f"{record.stage_position[0]:.0f}",
        f"{record.stage_position[1]:.0f}",
    ]
    fields.extend(f"{value:.4f}" for value in record.coefficients.ravel())
    return ", ".join(fields) + "\n"

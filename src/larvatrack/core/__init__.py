"""Core frame-analysis logic for larva posture tracking.

Pure computation only: nothing in this package performs I/O, logs to files
or imports from ``larvatrack.engine``.

Pipeline order per frame:
1. Threshold estimation (Otsu, first frame of a session only)
2. Contour extraction (largest-perimeter external contour)
3. Spectral decomposition and reconstruction
4. Curvature profile
5. Head/tail classification (vote-stabilised)
6. Skeleton, neck and tail-end bearing
7. Body angles
8. Head/tail kinematics
"""

from larvatrack.core.angles import body_angles
from larvatrack.core.contour import extract_contour
from larvatrack.core.curvature import perimeter_curvature
from larvatrack.core.head_tail import HeadTailClassifier, MasterIdentity, find_extremities
from larvatrack.core.history import HistoryBuffer
from larvatrack.core.kinematics import (
    FixedStage,
    StagePositionProvider,
    StageWorldResolver,
    WorldPositionResolver,
)
from larvatrack.core.skeleton import extract_skeleton, smoothed_bearing_derivative
from larvatrack.core.spectral import fourier_decompose, fourier_reconstruct
from larvatrack.core.threshold import otsu_threshold
from larvatrack.core.tracker import STEP_NAMES, Tracker
from larvatrack.core.types import (
    AnatomicalPoints,
    BodyAngles,
    BoundingBox,
    Detected,
    Frame,
    FrameResult,
    HistoryRecord,
    Kinematics,
    NoDetection,
    Skeleton,
)

__all__ = [
    "STEP_NAMES",
    "AnatomicalPoints",
    "BodyAngles",
    "BoundingBox",
    "Detected",
    "FixedStage",
    "Frame",
    "FrameResult",
    "HeadTailClassifier",
    "HistoryBuffer",
    "HistoryRecord",
    "Kinematics",
    "MasterIdentity",
    "NoDetection",
    "Skeleton",
    "StagePositionProvider",
    "StageWorldResolver",
    "Tracker",
    "WorldPositionResolver",
    "body_angles",
    "extract_contour",
    "extract_skeleton",
    "find_extremities",
    "fourier_decompose",
    "fourier_reconstruct",
    "otsu_threshold",
    "perimeter_curvature",
    "smoothed_bearing_derivative",
]

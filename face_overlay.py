"""Live webcam face overlay.

Every tick the current frame goes through the face models and the overlay
canvas is redrawn. Keyboard toggles play the role of the page checkboxes:

    space  enable / disable detection (disabled also hides the video)
    d      bounding boxes
    l      68-point landmarks
    e      expression labels
    q/Esc  quit
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from config import Settings, configure_logging, get_settings
from face_models import (
    LANDMARK_COUNT,
    FaceDetection,
    FaceModels,
    Size,
    load_models,
    resize_results,
)

logger = logging.getLogger(__name__)

WINDOW_NAME = "Face Overlay"

KEY_BINDINGS = {
    ord(" "): "enabled",
    ord("d"): "detections",
    ord("l"): "landmarks",
    ord("e"): "expressions",
}
QUIT_KEYS = {ord("q"), 27}

BOX_COLOR = (255, 128, 0)
LANDMARK_COLOR = (0, 200, 255)
TEXT_COLOR = (255, 255, 255)
MIN_EXPRESSION_PROBABILITY = 0.1

# Contours of the 68-point layout as (start, end, closed).
_LANDMARK_CONTOURS: Tuple[Tuple[int, int, bool], ...] = (
    (0, 17, False),   # jaw
    (17, 22, False),  # left brow
    (22, 27, False),  # right brow
    (27, 31, False),  # nose bridge
    (31, 36, False),  # nostrils
    (36, 42, True),   # left eye
    (42, 48, True),   # right eye
    (48, 60, True),   # outer lips
    (60, 68, True),   # inner lips
)


@dataclass
class OverlayToggles:
    enabled: bool = True
    detections: bool = True
    landmarks: bool = True
    expressions: bool = True

    def toggle(self, name: str) -> None:
        setattr(self, name, not getattr(self, name))


def handle_key(toggles: OverlayToggles, key: int) -> bool:
    """Apply a key press to the toggles; returns False when the user asked to quit."""

    if key in QUIT_KEYS:
        return False
    name = KEY_BINDINGS.get(key)
    if name:
        toggles.toggle(name)
        logger.info("Overlay %s %s", name, "on" if getattr(toggles, name) else "off")
    return True


def create_canvas(size: Size) -> np.ndarray:
    width, height = size
    return np.zeros((height, width, 3), dtype=np.uint8)


class CanvasDrawer:
    """OpenCV drawing primitives for detection records."""

    def clear(self, canvas: np.ndarray) -> None:
        canvas[:] = 0

    def draw_detections(self, canvas: np.ndarray, detections: Sequence[FaceDetection]) -> None:
        for detection in detections:
            box = detection.get("box")
            if not box:
                continue
            x, y = int(box["x"]), int(box["y"])
            x2, y2 = int(box["x"] + box["width"]), int(box["y"] + box["height"])
            cv2.rectangle(canvas, (x, y), (x2, y2), BOX_COLOR, 2)
            if "score" in detection:
                cv2.putText(
                    canvas,
                    f"{detection['score']:.2f}",
                    (x, max(12, y - 6)),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    0.5,
                    BOX_COLOR,
                    1,
                )

    def draw_face_landmarks(self, canvas: np.ndarray, detections: Sequence[FaceDetection]) -> None:
        for detection in detections:
            points = detection.get("landmarks") or []
            if len(points) < LANDMARK_COUNT:
                continue
            for start, end, closed in _LANDMARK_CONTOURS:
                contour = np.array(
                    [[int(px), int(py)] for px, py in points[start:end]], dtype=np.int32
                )
                cv2.polylines(canvas, [contour], closed, LANDMARK_COLOR, 1)

    def draw_face_expressions(
        self,
        canvas: np.ndarray,
        detections: Sequence[FaceDetection],
        min_probability: float = MIN_EXPRESSION_PROBABILITY,
    ) -> None:
        for detection in detections:
            box = detection.get("box")
            expressions = detection.get("expressions") or {}
            if not box or not expressions:
                continue
            ranked = sorted(expressions.items(), key=lambda item: item[1], reverse=True)
            x = int(box["x"])
            y = int(box["y"] + box["height"]) + 16
            for label, probability in ranked:
                if probability < min_probability:
                    continue
                cv2.putText(
                    canvas,
                    f"{label} ({probability:.2f})",
                    (x, y),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    0.45,
                    TEXT_COLOR,
                    1,
                )
                y += 16


class FaceOverlayLoop:
    """Per-tick detection and overlay redraw for one video stream."""

    def __init__(
        self,
        models: FaceModels,
        *,
        toggles: Optional[OverlayToggles] = None,
        drawer: Optional[CanvasDrawer] = None,
        display_size: Optional[Size] = None,
    ) -> None:
        self.models = models
        self.toggles = toggles or OverlayToggles()
        self.drawer = drawer or CanvasDrawer()
        self.display_size = display_size
        self.canvas: Optional[np.ndarray] = None
        self.video_hidden = False

    def on_play(self, frame: np.ndarray) -> None:
        """Create the overlay canvas for the stream's first frame."""

        frame_h, frame_w = frame.shape[:2]
        if not self.display_size:
            self.display_size = (frame_w, frame_h)
        self.canvas = create_canvas(self.display_size)

    def tick(self, frame: np.ndarray) -> List[FaceDetection]:
        if self.canvas is None:
            self.on_play(frame)

        if not self.toggles.enabled:
            self.drawer.clear(self.canvas)
            self.video_hidden = True
            return []

        self.video_hidden = False
        frame_h, frame_w = frame.shape[:2]
        detections = self.models.detect_all_faces(frame)
        resized = resize_results(detections, (frame_w, frame_h), self.display_size)
        logger.debug("Detections: %s", resized)

        self.drawer.clear(self.canvas)
        if self.toggles.detections:
            self.drawer.draw_detections(self.canvas, resized)
        if self.toggles.landmarks:
            self.drawer.draw_face_landmarks(self.canvas, resized)
        if self.toggles.expressions:
            self.drawer.draw_face_expressions(self.canvas, resized)
        return resized

    def render(self, frame: np.ndarray) -> np.ndarray:
        """Composite the overlay on top of the (possibly hidden) video frame."""

        if self.canvas is None:
            self.on_play(frame)
        width, height = self.display_size
        if self.video_hidden:
            base = np.zeros_like(self.canvas)
        elif frame.shape[1] != width or frame.shape[0] != height:
            base = cv2.resize(frame, (width, height))
        else:
            base = frame.copy()
        mask = self.canvas.any(axis=2)
        base[mask] = self.canvas[mask]
        return base


def open_camera(camera_index: int):
    """Open a capture device, raising ``RuntimeError`` when it is unavailable."""

    cap = cv2.VideoCapture(camera_index)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open camera index {camera_index}")
    return cap


def run_overlay(settings: Optional[Settings] = None) -> int:
    """Open the camera and run the overlay window until the user quits."""

    settings = settings or get_settings()
    try:
        models = load_models(settings.face_models_dir, compute_descriptors=settings.face_descriptors)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Could not load face models: %s", exc)
        return 1

    try:
        cap = open_camera(settings.camera_index)
    except RuntimeError as exc:
        logger.error("%s", exc)
        return 1

    display_size = None
    if settings.overlay_width > 0 and settings.overlay_height > 0:
        display_size = (settings.overlay_width, settings.overlay_height)
    overlay = FaceOverlayLoop(models, display_size=display_size)
    interval = settings.overlay_interval_ms / 1000.0
    next_tick = 0.0

    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                logger.warning("Frame read failed, stopping overlay")
                break

            # The next tick is scheduled after this one finishes, so inference never overlaps.
            if time.monotonic() >= next_tick:
                overlay.tick(frame)
                next_tick = time.monotonic() + interval

            cv2.imshow(WINDOW_NAME, overlay.render(frame))
            if not handle_key(overlay.toggles, cv2.waitKey(1) & 0xFF):
                break
    finally:
        cap.release()
        cv2.destroyAllWindows()
    return 0


def main() -> int:
    settings = get_settings()
    configure_logging(settings)
    return run_overlay(settings)


if __name__ == "__main__":
    raise SystemExit(main())

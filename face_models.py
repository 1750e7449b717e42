"""Pretrained face models and the detection records they produce.

Four bundles are loaded, mirroring a browser face-api page:

- frontal face detector (dlib HOG, shipped with dlib)
- 68-point landmark predictor (``shape_predictor_68_face_landmarks.dat``)
- face recognition network (``dlib_face_recognition_resnet_model_v1.dat``)
- expression classifier (DeepFace ``Emotion``)

dlib and DeepFace are imported when the models are loaded; both pull in
heavy native/TensorFlow stacks.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypedDict

import cv2
import numpy as np

logger = logging.getLogger(__name__)

LANDMARKS_MODEL_FILE = "shape_predictor_68_face_landmarks.dat"
RECOGNITION_MODEL_FILE = "dlib_face_recognition_resnet_model_v1.dat"
LANDMARK_COUNT = 68

Point = Tuple[float, float]
Size = Tuple[int, int]  # (width, height)


class FaceBox(TypedDict):
    x: float
    y: float
    width: float
    height: float


class FaceDetection(TypedDict, total=False):
    """One face in one frame."""

    box: FaceBox
    score: float
    landmarks: List[Point]
    expressions: Dict[str, float]
    descriptor: List[float]


def resize_results(
    detections: Sequence[FaceDetection],
    source_size: Size,
    display_size: Size,
) -> List[FaceDetection]:
    """Scale boxes and landmarks from frame coordinates to the overlay size."""

    src_w, src_h = source_size
    dst_w, dst_h = display_size
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid source size {source_size!r}")
    sx = dst_w / float(src_w)
    sy = dst_h / float(src_h)

    resized: List[FaceDetection] = []
    for detection in detections:
        scaled: FaceDetection = dict(detection)  # type: ignore[assignment]
        box = detection.get("box")
        if box is not None:
            scaled["box"] = {
                "x": box["x"] * sx,
                "y": box["y"] * sy,
                "width": box["width"] * sx,
                "height": box["height"] * sy,
            }
        if "landmarks" in detection:
            scaled["landmarks"] = [(x * sx, y * sy) for x, y in detection["landmarks"]]
        resized.append(scaled)
    return resized


class ExpressionModel:
    """Facial expression classifier backed by DeepFace's emotion model."""

    def __init__(self, analyze: Optional[Callable[..., object]] = None) -> None:
        self._analyze = analyze

    def load(self) -> None:
        if self._analyze is None:
            from deepface import DeepFace

            self._analyze = DeepFace.analyze
        # Warm-up builds the network before the first live frame.
        self.predict(np.zeros((48, 48, 3), dtype=np.uint8))

    def predict(self, face_image: np.ndarray) -> Dict[str, float]:
        """Return expression probabilities (0..1) for a cropped face image."""

        if self._analyze is None:
            raise RuntimeError("Expression model used before load()")
        results = self._analyze(
            img_path=face_image,
            actions=["emotion"],
            enforce_detection=False,
            detector_backend="skip",
            silent=True,
        )
        results = results if isinstance(results, list) else [results]
        scores = (results[0] or {}).get("emotion", {}) if results else {}
        return {label: float(value) / 100.0 for label, value in scores.items()}


class FaceModels:
    """Runs detection, landmarks, expressions (and optionally descriptors) on a frame."""

    def __init__(
        self,
        detector,
        landmark_predictor,
        recognizer,
        expressions: ExpressionModel,
        *,
        compute_descriptors: bool = False,
        upsample: int = 0,
    ) -> None:
        self.detector = detector
        self.landmark_predictor = landmark_predictor
        self.recognizer = recognizer
        self.expressions = expressions
        self.compute_descriptors = compute_descriptors
        self.upsample = upsample

    def detect_all_faces(self, frame: np.ndarray) -> List[FaceDetection]:
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rects, scores, _ = self.detector.run(rgb, self.upsample, 0)

        detections: List[FaceDetection] = []
        for rect, score in zip(rects, scores):
            shape = self.landmark_predictor(rgb, rect)
            x, y = rect.left(), rect.top()
            w, h = rect.width(), rect.height()
            detection: FaceDetection = {
                "box": {"x": float(x), "y": float(y), "width": float(w), "height": float(h)},
                "score": float(score),
                "landmarks": [
                    (float(shape.part(i).x), float(shape.part(i).y)) for i in range(shape.num_parts)
                ],
                "expressions": self.expressions.predict(_crop(frame, x, y, w, h)),
            }
            if self.compute_descriptors:
                detection["descriptor"] = list(self.recognizer.compute_face_descriptor(rgb, shape))
            detections.append(detection)
        return detections


def _crop(frame: np.ndarray, x: int, y: int, w: int, h: int) -> np.ndarray:
    frame_h, frame_w = frame.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(frame_w, x + w), min(frame_h, y + h)
    chip = frame[y0:y1, x0:x1]
    return chip if chip.size else frame


def load_models(models_dir: Path | str, *, compute_descriptors: bool = False) -> FaceModels:
    """Load all four model bundles from ``models_dir``."""

    models_path = Path(models_dir)
    landmarks_path = models_path / LANDMARKS_MODEL_FILE
    recognition_path = models_path / RECOGNITION_MODEL_FILE
    for path in (landmarks_path, recognition_path):
        if not path.exists():
            raise FileNotFoundError(f"Missing face model at {path}")

    import dlib

    logger.info("Loading face models from %s", models_path)
    detector = dlib.get_frontal_face_detector()
    landmark_predictor = dlib.shape_predictor(str(landmarks_path))
    recognizer = dlib.face_recognition_model_v1(str(recognition_path))
    expressions = ExpressionModel()
    expressions.load()
    logger.info("Face models loaded")

    return FaceModels(
        detector,
        landmark_predictor,
        recognizer,
        expressions,
        compute_descriptors=compute_descriptors,
    )


__all__ = [
    "FaceBox",
    "FaceDetection",
    "FaceModels",
    "ExpressionModel",
    "LANDMARK_COUNT",
    "load_models",
    "resize_results",
]

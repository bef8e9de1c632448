"""
YOLO Cat Detector - ImageService backed by a pretrained COCO model

Runs an ultralytics YOLO model restricted to the COCO "cat" class.
"""

import logging
import time
from typing import Dict

import numpy as np

from .image_service import ImageService

# Ultralytics YOLO (optional "vision" extra)
try:
    from ultralytics import YOLO
    HAS_YOLO = True
except ImportError:
    HAS_YOLO = False

logger = logging.getLogger(__name__)

CAT_CLASS_NAME = "cat"


class YOLOCatDetector(ImageService):
    """
    YOLO cat detector

    - Model loaded once at construction
    - Threshold given in percent, passed to YOLO as 0-1
    """

    def __init__(
        self,
        model_name: str = "yolo11n.pt",
        device: str = "cpu",
    ):
        """
        Args:
            model_name: YOLO weights file
            device: 'cpu' or 'cuda'
        """
        if not HAS_YOLO:
            raise RuntimeError("ultralytics not installed. Install: pip install catpoint[vision]")

        self.model_name = model_name
        self.device = device

        logger.info("Loading YOLO model %s on %s", model_name, device)
        self.model = YOLO(model_name)
        if device == "cuda":
            self.model.to("cuda")

        self.cat_class_ids = [
            class_id for class_id, name in self.model.names.items()
            if name == CAT_CLASS_NAME
        ]
        if not self.cat_class_ids:
            raise RuntimeError(f"Model {model_name} has no '{CAT_CLASS_NAME}' class")

        self.frame_count = 0
        self.detection_count = 0
        self.total_inference_time = 0.0

    def image_contains_cat(self, image: np.ndarray, confidence_threshold: float) -> bool:
        start_time = time.time()

        results = self.model(
            image,
            conf=confidence_threshold / 100.0,
            classes=self.cat_class_ids,
            device=self.device,
            verbose=False,
        )

        self.total_inference_time += time.time() - start_time
        self.frame_count += 1

        found = sum(len(result.boxes) for result in results)
        self.detection_count += found
        logger.debug("YOLO found %d cat(s) at threshold %.1f%%", found, confidence_threshold)
        return found > 0

    def get_stats(self) -> Dict:
        """Inference statistics."""
        return {
            "frame_count": self.frame_count,
            "detection_count": self.detection_count,
            "total_inference_time": self.total_inference_time,
            "avg_inference_time": self.total_inference_time / self.frame_count if self.frame_count > 0 else 0,
        }

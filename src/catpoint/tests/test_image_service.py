"""
Tests for image classifiers
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from catpoint.hardware import yolo_cat_detector
from catpoint.hardware.image_service import FakeImageService, StaticImageService


@pytest.fixture
def frame():
    return np.zeros((32, 48, 3), dtype=np.uint8)


class TestStaticImageService:

    def test_queued_results_then_default(self, frame):
        classifier = StaticImageService(contains_cat=False, results=[True])
        classifier.queue(False, True)

        answers = [classifier.image_contains_cat(frame, 50.0) for _ in range(4)]

        assert answers == [True, False, True, False]
        assert classifier.calls[0] == ((32, 48, 3), 50.0)


class TestFakeImageService:

    def test_seeded_answers_repeat(self, frame):
        first = FakeImageService(seed=7)
        second = FakeImageService(seed=7)

        a = [first.image_contains_cat(frame, 50.0) for _ in range(20)]
        b = [second.image_contains_cat(frame, 50.0) for _ in range(20)]

        assert a == b
        assert all(isinstance(x, bool) for x in a)


class TestYOLOCatDetector:

    def _model(self, boxes_per_result):
        model = MagicMock()
        model.names = {0: "person", 15: "cat", 16: "dog"}
        model.return_value = [MagicMock(boxes=[object()] * n) for n in boxes_per_result]
        return model

    def test_cat_found(self, frame):
        model = self._model([1])
        with patch.object(yolo_cat_detector, "HAS_YOLO", True), \
                patch.object(yolo_cat_detector, "YOLO", return_value=model, create=True):
            detector = yolo_cat_detector.YOLOCatDetector()
            found = detector.image_contains_cat(frame, 65.0)

        assert found is True
        _, kwargs = model.call_args
        assert kwargs["conf"] == pytest.approx(0.65)
        assert kwargs["classes"] == [15]
        assert detector.get_stats()["frame_count"] == 1

    def test_no_cat(self, frame):
        model = self._model([0, 0])
        with patch.object(yolo_cat_detector, "HAS_YOLO", True), \
                patch.object(yolo_cat_detector, "YOLO", return_value=model, create=True):
            detector = yolo_cat_detector.YOLOCatDetector()
            assert detector.image_contains_cat(frame, 50.0) is False

    def test_missing_ultralytics(self):
        with patch.object(yolo_cat_detector, "HAS_YOLO", False):
            with pytest.raises(RuntimeError, match="ultralytics"):
                yolo_cat_detector.YOLOCatDetector()

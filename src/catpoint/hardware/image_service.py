"""
Image Services - cat classifiers for camera frames

- ImageService: abstract classifier contract
- FakeImageService: random answers, stand-in for a real detector
- StaticImageService: scripted answers for tests and simulation
"""

import random
from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Optional

import numpy as np


class ImageService(ABC):
    """Decides whether an image shows a cat."""

    @abstractmethod
    def image_contains_cat(self, image: np.ndarray, confidence_threshold: float) -> bool:
        """
        Args:
            image: BGR frame as decoded by OpenCV
            confidence_threshold: minimum confidence, in percent (0-100)
        """
        pass


class FakeImageService(ImageService):
    """Guesses at random."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def image_contains_cat(self, image: np.ndarray, confidence_threshold: float) -> bool:
        return self._random.random() < 0.5


class StaticImageService(ImageService):
    """
    Deterministic classifier

    Answers queued results first, then the fixed default.
    Every call is recorded as (image shape, threshold).
    """

    def __init__(self, contains_cat: bool = False, results: Iterable[bool] = ()):
        self.contains_cat = contains_cat
        self._queued: deque[bool] = deque(results)
        self.calls: list[tuple[Optional[tuple], float]] = []

    def queue(self, *results: bool) -> None:
        self._queued.extend(results)

    def image_contains_cat(self, image: np.ndarray, confidence_threshold: float) -> bool:
        self.calls.append((getattr(image, "shape", None), confidence_threshold))
        if self._queued:
            return self._queued.popleft()
        return self.contains_cat

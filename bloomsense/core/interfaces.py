"""
BloomSense Core Interfaces.
Defines the abstract contracts for the external collaborators.
"""

from abc import ABC, abstractmethod

from bloomsense.core.types import DetectionFrame, SignalSnapshot


class ILandmarkDetector(ABC):
    """
    Abstract Protocol for the keypoint detector (black box).
    Must be called serially; may raise on a bad frame.
    """

    @abstractmethod
    def detect(self, rgb_image, timestamp: float) -> DetectionFrame: pass
    @abstractmethod
    def close(self) -> None: pass


class ISignalConsumer(ABC):
    """
    Abstract Protocol for render-side readers of the Signal Bus.
    Called once per display frame with the latest snapshot.
    """

    @abstractmethod
    def on_render(self, snapshot: SignalSnapshot, dt: float) -> None: pass

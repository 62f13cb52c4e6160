from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .landmarks import Landmark, PoseLandmark


class BasePoseDetector(ABC):
    """Interface for the pose-estimation collaborator that feeds the engine."""

    @abstractmethod
    def detect(self, frame: Any) -> Optional[List[Optional[Landmark]]]:
        """
        Detect pose landmarks in the given frame.

        Args:
            frame: Input frame in whatever form the detector consumes

        Returns:
            Landmark frame indexed by PoseLandmark, or None if no body was found
        """
        pass

    def get_landmark_names(self) -> List[str]:
        """
        Get the list of landmark names that this detector provides.

        Returns:
            List of landmark names, in index order
        """
        return [landmark.name.lower() for landmark in PoseLandmark]

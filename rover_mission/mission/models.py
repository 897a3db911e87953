"""
Mission models

Terminal status codes, action tags, mission steps and the goal payloads
sent to the navigation action server.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class MissionError(Exception):
    """Base class for mission state errors"""
    pass


class MissionStateError(MissionError):
    """Raised when a mission state is driven out of contract order"""
    pass


class InvalidParametersError(MissionError, ValueError):
    """Raised when mission step parameters cannot be parsed"""
    pass


class MissionStatus(IntEnum):
    """
    Goal status codes (actionlib_msgs/GoalStatus)

    Only PREEMPTED, SUCCEEDED and ABORTED are produced locally. The other
    codes can arrive from the action server and are passed through.
    """
    PENDING = 0
    ACTIVE = 1
    PREEMPTED = 2
    SUCCEEDED = 3
    ABORTED = 4
    REJECTED = 5
    PREEMPTING = 6
    RECALLING = 7
    RECALLED = 8
    LOST = 9

    @classmethod
    def from_code(cls, code: Any) -> 'MissionStatus':
        """Convert a raw status code from a result message"""
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            logger.warning(f"Unknown goal status code {code!r}, treating as LOST")
            return cls.LOST

    @property
    def is_success(self) -> bool:
        return self is MissionStatus.SUCCEEDED


class ActionTag(str, Enum):
    """Mission step actions that have a real implementation"""
    MOVE_TO_RELATIVE_COORD = "MoveToRelativeCoord"
    MOVE_TO_GPS_COORD = "MoveToGpsCoord"
    TAKE_MANUAL_CONTROL = "TakeManualControl"

    @classmethod
    def parse(cls, tag: str) -> Optional['ActionTag']:
        """Return the matching tag, or None if the action is not implemented"""
        try:
            return cls(tag)
        except ValueError:
            return None


@dataclass(frozen=True)
class MissionStep:
    """One entry of a mission plan"""
    action_tag: str
    parameters: str = ""

    def __str__(self) -> str:
        return f"{self.action_tag} {self.parameters}"


@dataclass(frozen=True)
class Point:
    """3D position (geometry_msgs/Point)"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class Quaternion:
    """Orientation (geometry_msgs/Quaternion), identity by default"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z, "w": self.w}


@dataclass(frozen=True)
class NavigationGoal:
    """
    Target pose for the navigation action server (move_base_msgs/MoveBaseGoal)

    Attributes:
        frame_id: Reference frame of the position ("base_link", "utm", ...)
        position: Target position in that frame
        orientation: Target orientation
    """
    frame_id: str
    position: Point
    orientation: Quaternion = Quaternion()

    @classmethod
    def planar(cls, frame_id: str, x: float, y: float) -> 'NavigationGoal':
        """Goal at (x, y) in frame_id with identity orientation"""
        return cls(frame_id=frame_id, position=Point(x=x, y=y))

    def to_message(self) -> Dict[str, Any]:
        """Convert to the goal message sent over the bus"""
        return {
            "target_pose": {
                "header": {"frame_id": self.frame_id},
                "pose": {
                    "position": self.position.to_dict(),
                    "orientation": self.orientation.to_dict(),
                },
            },
        }

"""
Mission state module

Provides the mission state contract, its variants and the factory that
builds them from mission steps.
"""

from .models import (
    ActionTag,
    MissionStep,
    MissionStatus,
    NavigationGoal,
    MissionError,
    MissionStateError,
    InvalidParametersError,
)
from .completion import CompletionSlot
from .states import (
    MissionState,
    RemoteActionState,
    GpsNavigationState,
    GpsPhase,
    ManualControlState,
    PlaceholderState,
)
from .factory import MissionStateFactory

__all__ = [
    # Models
    'ActionTag',
    'MissionStep',
    'MissionStatus',
    'NavigationGoal',
    # Errors
    'MissionError',
    'MissionStateError',
    'InvalidParametersError',
    # States
    'CompletionSlot',
    'MissionState',
    'RemoteActionState',
    'GpsNavigationState',
    'GpsPhase',
    'ManualControlState',
    'PlaceholderState',
    # Factory
    'MissionStateFactory',
]

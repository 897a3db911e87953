"""
Messaging interfaces for the rover mission core
"""

from .bus import MessageBus, LoopbackBus, Subscription
from .action_client import ActionClient, GoalHandle
from .transform_client import GpsToUtmClient, UtmCoordinate, TransformError

__all__ = [
    'MessageBus',
    'LoopbackBus',
    'Subscription',
    'ActionClient',
    'GoalHandle',
    'GpsToUtmClient',
    'UtmCoordinate',
    'TransformError',
]

"""
Utility modules
"""

from .geo import gps_to_utm, utm_zone
from .logger import setup_logging
from .parsing import parse_float, parse_coordinates
from .scheduler import Scheduler, ThreadingScheduler, ManualScheduler, TimerHandle

__all__ = [
    'gps_to_utm',
    'utm_zone',
    'setup_logging',
    'parse_float',
    'parse_coordinates',
    'Scheduler',
    'ThreadingScheduler',
    'ManualScheduler',
    'TimerHandle',
]

"""
One-shot completion delivery for mission states
"""

import logging
import threading
from typing import Callable, Optional

from .models import MissionStateError, MissionStatus

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[MissionStatus], None]


class CompletionSlot:
    """
    Holds the completion callback of a mission state and fires it once

    The callback is consumed on the first fire(); later calls are dropped
    and reported as False. arm() re-opens the slot for a new enter().
    """

    def __init__(self, owner: str = ""):
        self._owner = owner
        self._callback: Optional[CompletionCallback] = None
        self._armed = False
        self._status: Optional[MissionStatus] = None
        self._lock = threading.Lock()

    @property
    def is_set(self) -> bool:
        """True if a callback has been registered"""
        return self._callback is not None

    @property
    def armed(self) -> bool:
        """True between arm() and the first fire()"""
        return self._armed

    @property
    def fired(self) -> bool:
        return self._status is not None and not self._armed

    @property
    def status(self) -> Optional[MissionStatus]:
        """Status delivered by the last fire(), if any"""
        return self._status

    def set(self, callback: CompletionCallback):
        """Register the callback (must happen before arm())"""
        if not callable(callback):
            raise TypeError(f"Completion callback must be callable, got {callback!r}")
        with self._lock:
            if self._armed:
                raise MissionStateError(
                    f"Cannot replace completion callback of active state ({self._owner})"
                )
            self._callback = callback

    def arm(self):
        """
        Open the slot for one delivery

        Raises:
            MissionStateError: If no callback was registered
        """
        with self._lock:
            if self._callback is None:
                raise MissionStateError(
                    f"enter() called without a completion callback ({self._owner})"
                )
            self._armed = True
            self._status = None

    def fire(self, status: MissionStatus) -> bool:
        """
        Deliver status to the callback if the slot is still armed

        Returns:
            True if the callback was invoked
        """
        with self._lock:
            if not self._armed:
                logger.debug(f"Dropping {status.name} for retired state ({self._owner})")
                return False
            self._armed = False
            self._status = status
            callback = self._callback

        logger.info(f"State finished with {status.name} ({self._owner})")
        try:
            callback(status)
        except Exception as e:
            logger.error(f"Error in completion callback ({self._owner}): {e}")
            raise
        return True

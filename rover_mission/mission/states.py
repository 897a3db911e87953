"""
Mission states

A mission state is one asynchronous, cancellable step of a mission. The
sequencer registers a completion callback, calls enter(), may call
cancel(), and receives exactly one MissionStatus per enter().

Variants:
- RemoteActionState: sends a fixed goal to an action server
- GpsNavigationState: converts a GPS coordinate to UTM, then navigates
- ManualControlState: hands control to the operator
- PlaceholderState: stands in for actions with no implementation
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Dict, Optional

from .completion import CompletionCallback, CompletionSlot
from .models import MissionStatus, NavigationGoal

if TYPE_CHECKING:
    from ..interfaces.action_client import ActionClient, GoalHandle
    from ..interfaces.transform_client import GpsToUtmClient, UtmCoordinate
    from ..utils.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class MissionState(ABC):
    """Capability interface every mission state satisfies"""

    @abstractmethod
    def set_completion_callback(self, callback: CompletionCallback):
        """Register the callable invoked once with the terminal status"""

    @abstractmethod
    def enter(self):
        """
        Start the operation

        Raises:
            MissionStateError: If no completion callback was registered
        """

    @abstractmethod
    def cancel(self):
        """Request early termination (no-op once the state has finished)"""

    @abstractmethod
    def get_description(self) -> str:
        """Human-readable description"""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.get_description()}>"


class _GoalSession:
    """
    Runs one goal on an action client and reports its outcome

    The session keeps the handle of its pending goal and drops it the
    moment a terminal event arrives, so nothing after that can complete
    the state again.
    """

    def __init__(self, client: 'ActionClient', completion: CompletionSlot,
                 scheduler: Optional['Scheduler'] = None,
                 cancel_timeout_s: float = 0.0):
        if cancel_timeout_s > 0 and scheduler is None:
            raise ValueError("cancel_timeout_s requires a scheduler")

        self.client = client
        self.completion = completion
        self.scheduler = scheduler
        self.cancel_timeout_s = cancel_timeout_s

        self.handle: Optional['GoalHandle'] = None
        self._cancel_timer: Optional['TimerHandle'] = None

    @property
    def goal_id(self) -> Optional[str]:
        return self.handle.goal_id if self.handle else None

    def submit(self, goal_message: Dict[str, Any]):
        handle = self.client.send_goal(
            goal_message,
            on_result=self._on_result,
            on_timeout=self._on_timeout,
        )
        # A synchronous answer may already have finished the goal
        self.handle = None if handle.done else handle

    def request_cancel(self):
        """Forward a cancel to the server, arming the fallback if configured"""
        self.client.cancel()

        # The server may have answered inside cancel()
        if self.handle is None:
            return
        if self.cancel_timeout_s > 0 and self._cancel_timer is None:
            self._cancel_timer = self.scheduler.call_later(
                self.cancel_timeout_s, self._on_cancel_timeout
            )

    def _clear(self):
        self.handle = None
        if self._cancel_timer is not None:
            self._cancel_timer.cancel()
            self._cancel_timer = None

    def _on_result(self, status: MissionStatus, result: Dict[str, Any]):
        self._clear()
        self.completion.fire(status)

    def _on_timeout(self):
        self._clear()
        self.completion.fire(MissionStatus.ABORTED)

    def _on_cancel_timeout(self):
        self._cancel_timer = None
        if not self.completion.armed:
            return
        logger.warning(
            f"No response from {self.client.server_name} {self.cancel_timeout_s}s "
            f"after cancel, reporting PREEMPTED"
        )
        if self.handle is not None:
            self.handle.release()
        self._clear()
        self.completion.fire(MissionStatus.PREEMPTED)


class RemoteActionState(MissionState):
    """
    Sends a fixed goal to an action server

    cancel() only forwards the request to the server; the terminal status
    is whatever the server reports next. With cancel_timeout_s set, the
    state reports PREEMPTED itself if the server stays silent that long.
    """

    def __init__(self, action_client: 'ActionClient',
                 goal_message: Dict[str, Any],
                 description: str,
                 scheduler: Optional['Scheduler'] = None,
                 cancel_timeout_s: float = 0.0):
        """
        Initialize remote action state

        Args:
            action_client: Client for the target action server
            goal_message: Goal payload to submit on enter()
            description: Human-readable description
            scheduler: Scheduler for the cancel fallback timer
            cancel_timeout_s: Seconds to wait for the server after cancel (0 = forever)
        """
        self.action_client = action_client
        self.goal_message = goal_message
        self.description = description

        self._completion = CompletionSlot(description)
        self._session = _GoalSession(action_client, self._completion,
                                     scheduler, cancel_timeout_s)
        self._entered = False

    @property
    def server_name(self) -> str:
        return self.action_client.server_name

    @property
    def goal_id(self) -> Optional[str]:
        """Identity of the pending goal, None when nothing is pending"""
        return self._session.goal_id

    @property
    def finished(self) -> bool:
        return self._entered and not self._completion.armed

    def set_completion_callback(self, callback: CompletionCallback):
        self._completion.set(callback)

    def enter(self):
        self._completion.arm()
        self._entered = True
        logger.info(f"Entering state ({self.get_description()})")
        self._session.submit(self.goal_message)

    def cancel(self):
        if not self._entered:
            logger.warning(f"cancel() before enter() ignored ({self.get_description()})")
            return
        if self.finished:
            logger.debug(f"cancel() after completion ignored ({self.get_description()})")
            return

        logger.info(f"Cancelling state ({self.get_description()})")
        self._session.request_cancel()

    def get_description(self) -> str:
        return self.description


class GpsPhase(Enum):
    """Progress of a GpsNavigationState"""
    IDLE = auto()           # Not entered
    TRANSFORMING = auto()   # Waiting for the gps_to_utm response
    NAVIGATING = auto()     # Goal submitted, waiting for the result
    FINISHED = auto()       # Completion delivered (or cancelled before a goal)


class GpsNavigationState(MissionState):
    """
    Navigates to a GPS coordinate

    The coordinate is converted to UTM by the transform service first;
    the goal is only submitted once the response arrives. A cancel while
    the conversion is pending finishes the state with PREEMPTED and the
    late response is dropped, so no goal is ever sent.
    """

    def __init__(self, action_client: 'ActionClient',
                 transform_client: 'GpsToUtmClient',
                 scheduler: 'Scheduler',
                 lat: float, lon: float,
                 frame_id: str = "utm",
                 cancel_timeout_s: float = 0.0):
        """
        Initialize GPS navigation state

        Args:
            action_client: Client for the navigation action server
            transform_client: GPS to UTM service client
            scheduler: Scheduler for deferred deliveries
            lat, lon: Target in degrees
            frame_id: Frame of the submitted goal
            cancel_timeout_s: Seconds to wait for the server after cancel (0 = forever)
        """
        self.action_client = action_client
        self.transform_client = transform_client
        self.scheduler = scheduler
        self.lat = lat
        self.lon = lon
        self.frame_id = frame_id

        self.goal: Optional[NavigationGoal] = None
        self._phase = GpsPhase.IDLE
        self._completion = CompletionSlot(self.get_description())
        self._session = _GoalSession(action_client, self._completion,
                                     scheduler, cancel_timeout_s)

    @property
    def phase(self) -> GpsPhase:
        if self._phase is not GpsPhase.IDLE and not self._completion.armed:
            return GpsPhase.FINISHED
        return self._phase

    @property
    def goal_id(self) -> Optional[str]:
        return self._session.goal_id

    def set_completion_callback(self, callback: CompletionCallback):
        self._completion.set(callback)

    def enter(self):
        self._completion.arm()
        self._phase = GpsPhase.TRANSFORMING
        logger.info(f"Entering state ({self.get_description()})")
        self.transform_client.request(
            self.lat, self.lon,
            self._on_transformed,
            self._on_transform_error,
        )

    def _on_transformed(self, coord: 'UtmCoordinate'):
        if self.phase is not GpsPhase.TRANSFORMING:
            logger.info(
                f"Dropping late transform response ({coord.x}, {coord.y}) "
                f"for {self.get_description()}"
            )
            return

        self.goal = NavigationGoal.planar(self.frame_id, coord.x, coord.y)
        self._phase = GpsPhase.NAVIGATING
        self._session.submit(self.goal.to_message())

    def _on_transform_error(self, error: str):
        if self.phase is not GpsPhase.TRANSFORMING:
            return
        logger.error(f"Transform failed for {self.get_description()}: {error}")
        self._phase = GpsPhase.FINISHED
        self._completion.fire(MissionStatus.ABORTED)

    def cancel(self):
        phase = self.phase
        if phase is GpsPhase.IDLE:
            logger.warning(f"cancel() before enter() ignored ({self.get_description()})")
            return
        if phase is GpsPhase.FINISHED:
            logger.debug(f"cancel() after completion ignored ({self.get_description()})")
            return

        logger.info(f"Cancelling state ({self.get_description()})")
        if phase is GpsPhase.TRANSFORMING:
            # No goal yet: stop here and report PREEMPTED ourselves
            self._phase = GpsPhase.FINISHED
            self.action_client.cancel()
            self.scheduler.call_later(
                0.0, lambda: self._completion.fire(MissionStatus.PREEMPTED)
            )
            return

        self._session.request_cancel()

    def get_description(self) -> str:
        return f"Move to gps coordinate ({self.lat}, {self.lon})"


class ManualControlState(MissionState):
    """
    Hands control to the operator

    enter() reports ABORTED at once: the automated mission stops while a
    human is driving. cancel() on a state that was never entered reports
    PREEMPTED at once. After enter() the state is retired, so cancel() is a
    no-op.
    """

    def __init__(self):
        self._completion = CompletionSlot(self.get_description())
        self._entered = False
        self._reclaimed = False

    def set_completion_callback(self, callback: CompletionCallback):
        self._completion.set(callback)

    def enter(self):
        self._completion.arm()
        self._entered = True
        logger.info(f"Entering state ({self.get_description()})")
        self._completion.fire(MissionStatus.ABORTED)

    def cancel(self):
        if self._entered:
            logger.debug(f"cancel() after completion ignored ({self.get_description()})")
            return
        if self._reclaimed:
            return
        if not self._completion.is_set:
            logger.warning("cancel() on manual control state without a callback ignored")
            return

        logger.info(f"Cancelling state ({self.get_description()})")
        self._reclaimed = True
        if not self._completion.armed:
            self._completion.arm()
        self._completion.fire(MissionStatus.PREEMPTED)

    def get_description(self) -> str:
        return "Take manual control"


class PlaceholderState(MissionState):
    """
    Stand-in for an action without an implementation

    Succeeds after a fixed delay so mission playback is not blocked.
    Cancelling delivers PREEMPTED through the scheduler, never inline.
    """

    DEFAULT_DELAY_S = 1.0

    def __init__(self, action_tag: str, parameters: str,
                 scheduler: 'Scheduler',
                 delay_s: float = DEFAULT_DELAY_S):
        self.action_tag = action_tag
        self.parameters = parameters
        self.description = f"{action_tag} {parameters}"
        self.scheduler = scheduler
        self.delay_s = delay_s

        self._completion = CompletionSlot(self.get_description())
        self._timer: Optional['TimerHandle'] = None
        self._entered = False
        self._cancelling = False

    def set_completion_callback(self, callback: CompletionCallback):
        self._completion.set(callback)

    def enter(self):
        self._completion.arm()
        self._entered = True
        logger.info(f"Entering state ({self.get_description()})")
        self._timer = self.scheduler.call_later(
            self.delay_s, lambda: self._completion.fire(MissionStatus.SUCCEEDED)
        )

    def cancel(self):
        if not self._entered:
            logger.warning(f"cancel() before enter() ignored ({self.get_description()})")
            return
        if self._cancelling or not self._completion.armed:
            return

        logger.info(f"Cancelling state ({self.get_description()})")
        self._cancelling = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.scheduler.call_later(
            0.0, lambda: self._completion.fire(MissionStatus.PREEMPTED)
        )

    def get_description(self) -> str:
        return f"Placeholder state: {self.description}"

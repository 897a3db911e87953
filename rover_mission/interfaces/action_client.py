"""
Action client

Goal-based channel to a named action server over the message bus:

    <server>/goal    goal submissions   {goal_id: {id, stamp}, goal: {...}}
    <server>/cancel  cancel requests    {id: ""} cancels every goal
    <server>/result  terminal results   {status: {goal_id: {id}, status}, result}

Each submission returns a GoalHandle that only ever sees results for its
own goal id. A handle delivers at most one terminal event (result or
timeout) and then forgets its id, so late or duplicate results are dropped.
"""

import itertools
import logging
import uuid
from typing import Any, Callable, Dict, Optional

from .bus import Message, MessageBus
from ..mission.models import MissionStatus
from ..utils.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

ResultCallback = Callable[[MissionStatus, Dict[str, Any]], None]
TimeoutCallback = Callable[[], None]

_goal_counter = itertools.count(1)


def make_goal_id() -> str:
    """Unique goal identity, never reused within the process"""
    return f"goal_{next(_goal_counter)}_{uuid.uuid4().hex[:12]}"


class GoalHandle:
    """
    One submitted goal

    Attributes:
        goal_id: Identity assigned at submission
        goal_message: Payload that was sent
    """

    def __init__(self, client: 'ActionClient', goal_id: str, goal_message: Message):
        self.client = client
        self.goal_id = goal_id
        self.goal_message = goal_message

        self._on_result: Optional[ResultCallback] = None
        self._on_timeout: Optional[TimeoutCallback] = None
        self._timeout_timer: Optional[TimerHandle] = None
        self._done = False
        self.status: Optional[MissionStatus] = None

    @property
    def done(self) -> bool:
        """True once a result or timeout was delivered, or after release()"""
        return self._done

    def on_result(self, callback: Optional[ResultCallback]):
        """Set callback for the terminal result of this goal"""
        self._on_result = callback

    def on_timeout(self, callback: Optional[TimeoutCallback]):
        """Set callback for the goal timing out without a result"""
        self._on_timeout = callback

    def release(self):
        """Stop listening for this goal without cancelling it on the server"""
        self._finish()

    def _finish(self):
        self._done = True
        if self._timeout_timer is not None:
            self._timeout_timer.cancel()
            self._timeout_timer = None
        self.client._forget(self.goal_id)

    def _deliver_result(self, status: MissionStatus, result: Dict[str, Any]):
        if self._done:
            return
        self.status = status
        callback = self._on_result
        self._finish()
        logger.debug(f"Goal {self.goal_id} finished: {status.name}")
        if callback:
            callback(status, result)

    def _deliver_timeout(self):
        if self._done:
            return
        callback = self._on_timeout
        self._finish()
        logger.warning(f"Goal {self.goal_id} on {self.client.server_name} timed out")
        if callback:
            callback()


class ActionClient:
    """
    Client for one named action server

    Usage:
        client = ActionClient(bus, 'move_base', scheduler=scheduler)
        handle = client.send_goal(goal.to_message(),
                                  on_result=lambda status, result: ...)
    """

    def __init__(self, bus: MessageBus, server_name: str,
                 action_type: str = "",
                 scheduler: Optional[Scheduler] = None,
                 goal_timeout_s: float = 0.0):
        """
        Initialize action client

        Args:
            bus: Message bus
            server_name: Action server namespace (e.g. 'move_base')
            action_type: Action type name, informational
            scheduler: Scheduler for goal timeouts (required if goal_timeout_s > 0)
            goal_timeout_s: Seconds before an unanswered goal times out (0 = never)
        """
        if goal_timeout_s > 0 and scheduler is None:
            raise ValueError("goal_timeout_s requires a scheduler")

        self.bus = bus
        self.server_name = server_name
        self.action_type = action_type
        self.scheduler = scheduler
        self.goal_timeout_s = goal_timeout_s

        self._goals: Dict[str, GoalHandle] = {}
        self._result_subscription = bus.subscribe(self.result_topic, self._on_result_message)

    @property
    def goal_topic(self) -> str:
        return f"{self.server_name}/goal"

    @property
    def cancel_topic(self) -> str:
        return f"{self.server_name}/cancel"

    @property
    def result_topic(self) -> str:
        return f"{self.server_name}/result"

    @property
    def active_goal_count(self) -> int:
        return len(self._goals)

    def send_goal(self, goal_message: Message,
                  on_result: Optional[ResultCallback] = None,
                  on_timeout: Optional[TimeoutCallback] = None) -> GoalHandle:
        """
        Submit a goal to the action server

        Callbacks passed here are attached before the goal is published, so
        a server answering synchronously is not missed.

        Args:
            goal_message: Goal payload
            on_result: Callback for the terminal result
            on_timeout: Callback for the goal timing out

        Returns:
            Handle for the new goal
        """
        goal_id = make_goal_id()
        handle = GoalHandle(self, goal_id, goal_message)
        handle.on_result(on_result)
        handle.on_timeout(on_timeout)
        self._goals[goal_id] = handle

        if self.goal_timeout_s > 0:
            handle._timeout_timer = self.scheduler.call_later(
                self.goal_timeout_s, handle._deliver_timeout
            )

        stamp = self.scheduler.now() if self.scheduler else 0.0
        logger.debug(f"Sending goal {goal_id} to {self.server_name}")
        self.bus.publish(self.goal_topic, {
            "goal_id": {"id": goal_id, "stamp": stamp},
            "goal": goal_message,
        })
        return handle

    def cancel(self):
        """Ask the server to cancel all of its goals (no acknowledgement)"""
        logger.debug(f"Cancelling goals on {self.server_name}")
        self.bus.publish(self.cancel_topic, {"id": ""})

    def close(self):
        """Stop listening for results and drop every tracked goal"""
        for handle in list(self._goals.values()):
            handle.release()
        self._result_subscription.unsubscribe()

    def _forget(self, goal_id: str):
        self._goals.pop(goal_id, None)

    def _on_result_message(self, message: Message):
        try:
            status_msg = message["status"]
            goal_id = status_msg["goal_id"]["id"]
            code = status_msg["status"]
        except (KeyError, TypeError):
            logger.warning(f"Malformed result on {self.result_topic}: {message!r}")
            return

        handle = self._goals.get(goal_id)
        if handle is None:
            logger.debug(f"Ignoring result for unknown goal {goal_id} on {self.server_name}")
            return

        handle._deliver_result(MissionStatus.from_code(code), message.get("result") or {})

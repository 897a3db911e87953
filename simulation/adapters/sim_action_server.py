"""
Simulated navigation action server

Answers goals published on <server>/goal with a result on <server>/result
after a fixed travel time, and preempts them on <server>/cancel.
"""

import logging
from typing import Dict, List, Optional

from rover_mission.interfaces.bus import Message, MessageBus
from rover_mission.mission.models import MissionStatus
from rover_mission.utils.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class SimulatedActionServer:
    """
    Simulated action server

    Features:
    - Configurable travel time and final status
    - Optional silence (never answers) to exercise timeouts
    - Optional deafness to cancel requests
    - Direct result injection for stray/duplicate message tests
    """

    def __init__(self, bus: MessageBus, scheduler: Scheduler,
                 server_name: str = "move_base",
                 goal_duration_s: float = 2.0,
                 result_status: MissionStatus = MissionStatus.SUCCEEDED,
                 respond: bool = True,
                 honor_cancel: bool = True):
        """
        Initialize simulated server

        Args:
            bus: Message bus to serve on
            scheduler: Timer source for travel time
            server_name: Action server namespace
            goal_duration_s: Seconds from goal to result
            result_status: Status reported when a goal completes
            respond: If False, goals are accepted but never answered
            honor_cancel: If False, cancel requests are ignored
        """
        self.bus = bus
        self.scheduler = scheduler
        self.server_name = server_name
        self.goal_duration_s = goal_duration_s
        self.result_status = MissionStatus(result_status)
        self.respond = respond
        self.honor_cancel = honor_cancel

        self.received_goals: List[Message] = []
        self.cancel_requests: List[Message] = []
        self._active: Dict[str, Optional[TimerHandle]] = {}

        self._subscriptions = [
            bus.subscribe(f"{server_name}/goal", self._on_goal),
            bus.subscribe(f"{server_name}/cancel", self._on_cancel),
        ]
        logger.info(f"SimulatedActionServer serving {server_name}")

    @property
    def active_goal_ids(self) -> List[str]:
        return list(self._active)

    @property
    def last_goal(self) -> Optional[Message]:
        """Most recent goal payload received"""
        return self.received_goals[-1]["goal"] if self.received_goals else None

    def _on_goal(self, message: Message):
        goal_id = message["goal_id"]["id"]
        self.received_goals.append(message)
        logger.debug(f"Goal {goal_id} accepted")

        timer = None
        if self.respond:
            timer = self.scheduler.call_later(
                self.goal_duration_s,
                lambda: self.finish(goal_id, self.result_status),
            )
        self._active[goal_id] = timer

    def _on_cancel(self, message: Message):
        self.cancel_requests.append(message)
        if not self.honor_cancel:
            logger.debug("Ignoring cancel request")
            return

        target = message.get("id") or ""
        for goal_id in list(self._active):
            if target in ("", goal_id):
                self.finish(goal_id, MissionStatus.PREEMPTED)

    def finish(self, goal_id: str, status: MissionStatus):
        """Complete an active goal now with the given status"""
        timer = self._active.pop(goal_id, None)
        if timer is not None:
            timer.cancel()
        self.publish_result(goal_id, status)

    def publish_result(self, goal_id: str, status: int):
        """Publish a result message for any goal id, active or not"""
        logger.debug(f"Result for {goal_id}: {int(status)}")
        self.bus.publish(f"{self.server_name}/result", {
            "status": {"goal_id": {"id": goal_id}, "status": int(status)},
            "result": {},
        })

    def shutdown(self):
        """Stop serving and drop pending results"""
        for timer in self._active.values():
            if timer is not None:
                timer.cancel()
        self._active.clear()
        for subscription in self._subscriptions:
            subscription.unsubscribe()

"""
Mission state factory

Builds a MissionState from a mission step (action tag + parameter string).
Unknown tags never fail: they produce a PlaceholderState so a plan that
references unimplemented actions can still be played back.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List

from .models import (
    ActionTag,
    InvalidParametersError,
    MissionStep,
    NavigationGoal,
)
from .states import (
    GpsNavigationState,
    ManualControlState,
    MissionState,
    PlaceholderState,
    RemoteActionState,
)
from ..utils.parsing import parse_coordinates, split_fields

if TYPE_CHECKING:
    from ..config import Config
    from ..interfaces.action_client import ActionClient
    from ..interfaces.transform_client import GpsToUtmClient
    from ..utils.scheduler import Scheduler

logger = logging.getLogger(__name__)


class MissionStateFactory:
    """
    Creates mission states bound to the robot's action and transform clients

    Usage:
        factory = MissionStateFactory(nav_client, gps_client, scheduler)
        state = factory.build("MoveToRelativeCoord", "1.5 -2.0")
    """

    def __init__(self, action_client: 'ActionClient',
                 transform_client: 'GpsToUtmClient',
                 scheduler: 'Scheduler',
                 relative_frame: str = "base_link",
                 gps_frame: str = "utm",
                 placeholder_delay_s: float = PlaceholderState.DEFAULT_DELAY_S,
                 cancel_timeout_s: float = 0.0,
                 strict_parameters: bool = False):
        """
        Initialize factory

        Args:
            action_client: Navigation action server client (move_base)
            transform_client: GPS to UTM service client
            scheduler: Timer source shared by all states
            relative_frame: Frame for MoveToRelativeCoord goals
            gps_frame: Frame for MoveToGpsCoord goals
            placeholder_delay_s: Delay before a placeholder state succeeds
            cancel_timeout_s: Cancel fallback for channel-backed states (0 = off)
            strict_parameters: Raise InvalidParametersError on malformed numbers
        """
        self.action_client = action_client
        self.transform_client = transform_client
        self.scheduler = scheduler
        self.relative_frame = relative_frame
        self.gps_frame = gps_frame
        self.placeholder_delay_s = placeholder_delay_s
        self.cancel_timeout_s = cancel_timeout_s
        self.strict_parameters = strict_parameters

    @classmethod
    def from_config(cls, config: 'Config',
                    action_client: 'ActionClient',
                    transform_client: 'GpsToUtmClient',
                    scheduler: 'Scheduler') -> 'MissionStateFactory':
        """Create a factory using the frames, delays and policies in config"""
        return cls(
            action_client,
            transform_client,
            scheduler,
            relative_frame=config.frames.relative_frame,
            gps_frame=config.frames.gps_frame,
            placeholder_delay_s=config.placeholder.delay_s,
            cancel_timeout_s=config.action.cancel_timeout_s,
            strict_parameters=config.factory.strict_parameters,
        )

    def build(self, action_tag: str, parameters: str = "") -> MissionState:
        """
        Build the state for one mission step

        Args:
            action_tag: Action name from the mission plan
            parameters: Tag-specific parameter string

        Returns:
            A state ready for set_completion_callback() and enter()

        Raises:
            InvalidParametersError: Only with strict_parameters, for
                malformed coordinates
        """
        parameters = parameters or ""
        tag = ActionTag.parse(action_tag)

        if tag is ActionTag.MOVE_TO_RELATIVE_COORD:
            return self._make_relative_coord_state(parameters)

        elif tag is ActionTag.MOVE_TO_GPS_COORD:
            return self._make_gps_coord_state(parameters)

        elif tag is ActionTag.TAKE_MANUAL_CONTROL:
            return ManualControlState()

        logger.warning(
            f'Unrecognized action class "{action_tag}" (parameters: "{parameters}"). '
            f'Making a placeholder state instead.'
        )
        return PlaceholderState(action_tag, parameters, self.scheduler,
                                delay_s=self.placeholder_delay_s)

    def build_step(self, step: MissionStep) -> MissionState:
        """Build the state for a MissionStep"""
        return self.build(step.action_tag, step.parameters)

    def build_all(self, steps: List[MissionStep]) -> List[MissionState]:
        """Build states for a sequence of steps, in order"""
        return [self.build_step(step) for step in steps]

    def _parse(self, action_tag: ActionTag, parameters: str,
               names: List[str]) -> List[float]:
        values = parse_coordinates(parameters, len(names))
        bad = [name for name, value in zip(names, values) if math.isnan(value)]
        if bad:
            message = (
                f"{action_tag.value}: could not parse {', '.join(bad)} "
                f"from \"{parameters}\""
            )
            if self.strict_parameters:
                raise InvalidParametersError(message)
            logger.warning(f"{message}, using nan")
        return values

    def _make_relative_coord_state(self, parameters: str) -> RemoteActionState:
        x, y = self._parse(ActionTag.MOVE_TO_RELATIVE_COORD, parameters, ["x", "y"])
        raw_x, raw_y = split_fields(parameters, 2)

        goal = NavigationGoal.planar(self.relative_frame, x, y)
        description = f"Move to relative coordinate ({raw_x}, {raw_y})"

        return RemoteActionState(
            self.action_client,
            goal.to_message(),
            description,
            scheduler=self.scheduler,
            cancel_timeout_s=self.cancel_timeout_s,
        )

    def _make_gps_coord_state(self, parameters: str) -> GpsNavigationState:
        lat, lon = self._parse(ActionTag.MOVE_TO_GPS_COORD, parameters, ["lat", "lon"])

        return GpsNavigationState(
            self.action_client,
            self.transform_client,
            self.scheduler,
            lat=lat,
            lon=lon,
            frame_id=self.gps_frame,
            cancel_timeout_s=self.cancel_timeout_s,
        )

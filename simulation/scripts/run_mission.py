#!/usr/bin/env python3
"""
Play mission steps against the simulated rover

Usage:
    python simulation/scripts/run_mission.py \
        --step "MoveToRelativeCoord 1.5 -2.0" \
        --step "MoveToGpsCoord 43.6045 1.4440" \
        --step "DoBarrelRoll 3"
"""

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from rover_mission.config import Config
from rover_mission.interfaces import ActionClient, GpsToUtmClient, LoopbackBus
from rover_mission.mission import MissionStateFactory, MissionStatus, MissionStep
from rover_mission.utils.logger import setup_logging_from_config
from rover_mission.utils.scheduler import ThreadingScheduler
from simulation.adapters import SimulatedActionServer, SimulatedGpsToUtm

logger = logging.getLogger("run_mission")


def parse_step(text: str) -> MissionStep:
    """'Tag p1 p2' -> MissionStep('Tag', 'p1 p2')"""
    tag, _, parameters = text.strip().partition(" ")
    return MissionStep(tag, parameters.strip())


class StepOutcome:
    """
    Completion callback for one step

    One instance per step: a completion arriving after the step gave up
    only ever lands in its own instance.
    """

    def __init__(self):
        self.status: Optional[MissionStatus] = None
        self._done = threading.Event()

    def __call__(self, status: MissionStatus):
        self.status = status
        self._done.set()

    def wait(self, timeout: float) -> bool:
        return self._done.wait(timeout)


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Rover Mission - simulated mission playback"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file (YAML)"
    )

    parser.add_argument(
        "--step",
        action="append",
        default=[],
        help='Mission step as "ActionTag parameters" (repeatable)'
    )

    parser.add_argument(
        "--step-timeout",
        type=float,
        default=60.0,
        help="Seconds to wait for each step before cancelling it"
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args()


def main() -> int:
    args = parse_args()
    config = Config.load(args.config)

    setup_logging_from_config(config, debug=args.debug)

    if not args.step:
        logger.error("No mission steps given (use --step)")
        return 2

    steps = [parse_step(s) for s in args.step]
    failures = play_mission(config, steps, args.step_timeout)
    return 1 if failures else 0


def play_mission(config: Config, steps: List[MissionStep], step_timeout: float) -> int:
    """
    Run steps one after another against the simulated servers

    Returns:
        Number of steps that did not succeed
    """
    scheduler = ThreadingScheduler()
    bus = LoopbackBus()

    SimulatedActionServer(
        bus, scheduler,
        server_name=config.action.server_name,
        goal_duration_s=config.simulation.goal_duration_s,
        result_status=MissionStatus(config.simulation.result_status),
    )
    SimulatedGpsToUtm(bus, config.transform.service_name)

    action_client = ActionClient(
        bus, config.action.server_name, config.action.action_type,
        scheduler=scheduler, goal_timeout_s=config.action.goal_timeout_s,
    )
    transform_client = GpsToUtmClient(bus, config.transform.service_name,
                                      config.transform.service_type)
    factory = MissionStateFactory.from_config(config, action_client,
                                              transform_client, scheduler)

    failures = 0
    for index, step in enumerate(steps):
        state = factory.build_step(step)
        outcome = StepOutcome()
        state.set_completion_callback(outcome)
        logger.info(f"Step {index}: {state.get_description()}")

        with scheduler.lock:
            state.enter()

        if not outcome.wait(step_timeout):
            logger.warning(f"Step {index} still running after {step_timeout}s, cancelling")
            with scheduler.lock:
                state.cancel()
            outcome.wait(config.action.cancel_timeout_s or step_timeout)

        status = outcome.status
        logger.info(f"Step {index} finished: {status.name if status else 'NO RESULT'}")
        if status is not MissionStatus.SUCCEEDED:
            failures += 1

    action_client.close()
    return failures


if __name__ == "__main__":
    sys.exit(main())

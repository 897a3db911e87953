"""
Integration tests: mission states driven against the simulated rover
"""

import importlib.util
from pathlib import Path

import pytest

from rover_mission.config import Config
from rover_mission.mission import (
    MissionStateFactory,
    MissionStatus,
    MissionStep,
    PlaceholderState,
)
from rover_mission.utils.geo import gps_to_utm

RUN_MISSION = Path(__file__).parent.parent / "simulation" / "scripts" / "run_mission.py"


def load_run_mission():
    module_spec = importlib.util.spec_from_file_location("run_mission", RUN_MISSION)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def play(states, scheduler, seconds_per_step=10.0):
    """Run states in order the way a sequencer would, collecting statuses"""
    statuses = []
    for state in states:
        state.set_completion_callback(statuses.append)
        state.enter()
        scheduler.advance(seconds_per_step)
    return statuses


class TestMissionPlayback:
    """Test whole plans on the loopback bus"""

    def test_plan_of_every_action(self, factory, scheduler, action_server, gps_service):
        """Test one status per step, in order"""
        states = factory.build_all([
            MissionStep("MoveToRelativeCoord", "1.5 -2.0"),
            MissionStep("MoveToGpsCoord", "43.6045 1.4440"),
            MissionStep("DoBarrelRoll", "3"),
            MissionStep("TakeManualControl"),
        ])

        statuses = play(states, scheduler)

        assert statuses == [
            MissionStatus.SUCCEEDED,
            MissionStatus.SUCCEEDED,
            MissionStatus.SUCCEEDED,
            MissionStatus.ABORTED,
        ]

    def test_server_sees_goals_in_order(self, factory, scheduler, action_server, gps_service):
        """Test goal payloads reaching the server"""
        states = factory.build_all([
            MissionStep("MoveToRelativeCoord", "1.5 -2.0"),
            MissionStep("MoveToGpsCoord", "43.6045 1.4440"),
        ])
        play(states, scheduler)

        first, second = [g["goal"]["target_pose"] for g in action_server.received_goals]
        easting, northing, _, _ = gps_to_utm(43.6045, 1.4440)

        assert first["header"]["frame_id"] == "base_link"
        assert first["pose"]["position"]["x"] == 1.5
        assert second["header"]["frame_id"] == "utm"
        assert second["pose"]["position"]["x"] == pytest.approx(easting)
        assert second["pose"]["position"]["y"] == pytest.approx(northing)

    def test_server_tracks_active_goals(self, factory, scheduler, action_server):
        """Test the simulated server holds a goal until its result is published"""
        state = factory.build("MoveToRelativeCoord", "1.5 -2.0")
        state.set_completion_callback(lambda status: None)
        state.enter()

        assert action_server.active_goal_ids == [state.goal_id]
        assert action_server.last_goal == state.goal_message

        scheduler.advance(2.0)

        assert action_server.active_goal_ids == []

    def test_failing_server(self, bus, scheduler, factory, gps_service):
        """Test ABORTED results are passed through"""
        from simulation.adapters import SimulatedActionServer
        SimulatedActionServer(bus, scheduler, result_status=MissionStatus.ABORTED)

        statuses = play(factory.build_all([MissionStep("MoveToRelativeCoord", "1 1")]),
                        scheduler)

        assert statuses == [MissionStatus.ABORTED]

    def test_previous_goal_result_does_not_leak(self, factory, scheduler,
                                                silent_server, gps_service, recorder):
        """Test a late result of step N never completes step N+1"""
        first = factory.build("MoveToRelativeCoord", "1 0")
        first.set_completion_callback(lambda status: None)
        first.enter()
        old_goal = first.goal_id
        first.cancel()

        second = factory.build("MoveToGpsCoord", "43.6 1.4")
        second.set_completion_callback(recorder)
        second.enter()

        silent_server.publish_result(old_goal, MissionStatus.PREEMPTED)
        assert recorder.count == 0

        silent_server.publish_result(second.goal_id, MissionStatus.SUCCEEDED)
        assert recorder.calls == [MissionStatus.SUCCEEDED]

    def test_cancel_fallback_from_config(self, action_client, transform_client,
                                         scheduler, silent_server, recorder):
        """Test the configured cancel timeout reaches built states"""
        factory = MissionStateFactory.from_config(Config(), action_client,
                                                  transform_client, scheduler)
        state = factory.build("MoveToRelativeCoord", "1 1")
        state.set_completion_callback(recorder)
        state.enter()
        state.cancel()

        scheduler.advance(9.0)
        assert recorder.count == 0
        scheduler.advance(1.0)
        assert recorder.calls == [MissionStatus.PREEMPTED]


class TestRunMissionScript:
    """Test the playback script with real timers"""

    @pytest.fixture
    def fast_config(self):
        config = Config()
        config.simulation.goal_duration_s = 0.01
        config.placeholder.delay_s = 0.01
        config.action.cancel_timeout_s = 0.5
        return config

    def test_parse_step(self):
        run_mission = load_run_mission()
        step = run_mission.parse_step("  MoveToGpsCoord 43.6 1.4 ")
        assert step == MissionStep("MoveToGpsCoord", "43.6 1.4")

    def test_late_completion_stays_with_its_step(self, scheduler):
        """Test a state finishing after its step gave up leaves the next step alone"""
        run_mission = load_run_mission()
        stuck = PlaceholderState("Wave", "", scheduler, delay_s=5.0)
        first = run_mission.StepOutcome()
        stuck.set_completion_callback(first)
        stuck.enter()
        assert not first.wait(0.0)

        second = run_mission.StepOutcome()
        scheduler.advance(5.0)

        assert first.status is MissionStatus.SUCCEEDED
        assert second.status is None
        assert not second.wait(0.0)

    def test_play_mission(self, fast_config):
        """Test every step succeeds against the simulated servers"""
        run_mission = load_run_mission()
        steps = [
            MissionStep("MoveToRelativeCoord", "1 2"),
            MissionStep("MoveToGpsCoord", "43.6045 1.4440"),
            MissionStep("Wave"),
        ]

        assert run_mission.play_mission(fast_config, steps, step_timeout=5.0) == 0

    def test_play_mission_counts_failures(self, fast_config):
        """Test manual control and aborted goals count as failures"""
        fast_config.simulation.result_status = int(MissionStatus.ABORTED)
        run_mission = load_run_mission()
        steps = [
            MissionStep("MoveToRelativeCoord", "1 2"),
            MissionStep("TakeManualControl"),
        ]

        assert run_mission.play_mission(fast_config, steps, step_timeout=5.0) == 2

    def test_stuck_step_is_cancelled(self, fast_config):
        """Test a step exceeding its timeout is cancelled and counted"""
        fast_config.simulation.goal_duration_s = 30.0
        run_mission = load_run_mission()

        failures = run_mission.play_mission(
            fast_config, [MissionStep("MoveToRelativeCoord", "1 2")], step_timeout=0.1
        )

        assert failures == 1

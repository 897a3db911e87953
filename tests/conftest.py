"""
Pytest configuration and fixtures
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class CompletionRecorder:
    """Callable that records every status it is called with"""

    def __init__(self):
        self.calls = []

    def __call__(self, status):
        self.calls.append(status)

    @property
    def count(self) -> int:
        return len(self.calls)

    @property
    def last(self):
        return self.calls[-1] if self.calls else None


@pytest.fixture
def recorder():
    """Fixture for a completion callback recorder"""
    return CompletionRecorder()


@pytest.fixture
def scheduler():
    """Fixture for a deterministic scheduler"""
    from rover_mission.utils.scheduler import ManualScheduler
    return ManualScheduler()


@pytest.fixture
def bus():
    """Fixture for an in-process message bus"""
    from rover_mission.interfaces.bus import LoopbackBus
    return LoopbackBus()


@pytest.fixture
def action_client(bus, scheduler):
    """Fixture for a move_base action client without goal timeout"""
    from rover_mission.interfaces.action_client import ActionClient
    return ActionClient(bus, "move_base", "move_base_msgs/MoveBaseAction",
                        scheduler=scheduler)


@pytest.fixture
def transform_client(bus):
    """Fixture for the gps_to_utm client"""
    from rover_mission.interfaces.transform_client import GpsToUtmClient
    return GpsToUtmClient(bus)


@pytest.fixture
def action_server(bus, scheduler):
    """Fixture for a simulated move_base server (2 s per goal)"""
    from simulation.adapters import SimulatedActionServer
    return SimulatedActionServer(bus, scheduler, goal_duration_s=2.0)


@pytest.fixture
def silent_server(bus, scheduler):
    """Fixture for a move_base server that never answers and ignores cancels"""
    from simulation.adapters import SimulatedActionServer
    return SimulatedActionServer(bus, scheduler, respond=False, honor_cancel=False)


@pytest.fixture
def gps_service(bus):
    """Fixture for a gps_to_utm service that answers immediately"""
    from simulation.adapters import SimulatedGpsToUtm
    return SimulatedGpsToUtm(bus)


@pytest.fixture
def deferred_gps_service(bus):
    """Fixture for a gps_to_utm service that holds requests"""
    from simulation.adapters import SimulatedGpsToUtm
    return SimulatedGpsToUtm(bus, deferred=True)


@pytest.fixture
def factory(action_client, transform_client, scheduler):
    """Fixture for a mission state factory with the legacy cancel behavior"""
    from rover_mission.mission.factory import MissionStateFactory
    return MissionStateFactory(action_client, transform_client, scheduler)

"""Simulated rover services for the loopback bus"""
from .sim_action_server import SimulatedActionServer
from .sim_transform_service import SimulatedGpsToUtm

__all__ = ["SimulatedActionServer", "SimulatedGpsToUtm"]

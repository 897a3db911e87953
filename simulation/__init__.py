"""
Rover Mission - Simulation Module

In-process stand-ins for the rover's action server and GPS to UTM
service, running on the loopback bus.
"""

__version__ = "1.0.0"

"""
Rover Mission

Mission states for driving a rover through navigation and operator
handoff steps over an asynchronous message bus.
"""

__version__ = "0.1.0"

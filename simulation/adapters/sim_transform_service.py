"""
Simulated GPS to UTM service
"""

import logging
from typing import Callable, List, Tuple

from rover_mission.interfaces.bus import Message, MessageBus
from rover_mission.utils.geo import gps_to_utm

logger = logging.getLogger(__name__)


class SimulatedGpsToUtm:
    """
    Serves gps_to_utm requests with a real WGS84 to UTM projection

    In deferred mode requests are held until release_pending() is called,
    which lets tests act while a conversion is in flight.
    """

    def __init__(self, bus: MessageBus, service_name: str = "gps_to_utm",
                 deferred: bool = False):
        self.bus = bus
        self.service_name = service_name
        self.deferred = deferred

        self.requests: List[Message] = []
        self._pending: List[Tuple[Message, Callable[[Message], None]]] = []

        bus.advertise_service(service_name, self._handle)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @staticmethod
    def convert(request: Message) -> Message:
        """Build the response for a request"""
        gps = request["gps_coord"]
        try:
            easting, northing, zone, hemisphere = gps_to_utm(gps["x"], gps["y"])
        except ValueError as e:
            logger.error(f"Cannot convert {gps}: {e}")
            return {"error": str(e)}

        logger.debug(f"({gps['x']}, {gps['y']}) -> zone {zone}{hemisphere} "
                     f"({easting:.2f}, {northing:.2f})")
        return {"utm_coord": {"x": easting, "y": northing, "z": 0.0}}

    def _handle(self, request: Message, respond: Callable[[Message], None]):
        self.requests.append(request)
        if self.deferred:
            self._pending.append((request, respond))
            return
        respond(self.convert(request))

    def release_pending(self) -> int:
        """Answer every held request; returns how many were answered"""
        pending, self._pending = self._pending, []
        for request, respond in pending:
            respond(self.convert(request))
        return len(pending)

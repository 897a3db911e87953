"""
GPS to UTM transform client

Request/response wrapper around the gps_to_utm service:

    request   {gps_coord: {x: lat, y: lon, z: 0}}
    response  {utm_coord: {x: easting, y: northing}}
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .bus import Message, MessageBus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UtmCoordinate:
    """Planar coordinate returned by the transform service"""
    x: float
    y: float


class TransformError(Exception):
    """Raised for an unusable transform service response"""
    pass


class GpsToUtmClient:
    """Client for the GPS to UTM conversion service"""

    def __init__(self, bus: MessageBus,
                 service_name: str = "gps_to_utm",
                 service_type: str = "spear_rover/GpsToUtm"):
        self.bus = bus
        self.service_name = service_name
        self.service_type = service_type

    @staticmethod
    def build_request(lat: float, lon: float) -> Message:
        return {"gps_coord": {"x": lat, "y": lon, "z": 0}}

    @staticmethod
    def parse_response(response: Message) -> UtmCoordinate:
        """
        Extract the UTM coordinate from a service response

        Raises:
            TransformError: If the response lacks utm_coord.x/y
        """
        try:
            coord = response["utm_coord"]
            return UtmCoordinate(x=float(coord["x"]), y=float(coord["y"]))
        except (KeyError, TypeError, ValueError) as e:
            raise TransformError(f"Malformed gps_to_utm response {response!r}: {e}")

    def request(self, lat: float, lon: float,
                callback: Callable[[UtmCoordinate], None],
                error_callback: Optional[Callable[[str], None]] = None):
        """
        Convert (lat, lon) asynchronously

        Args:
            lat, lon: Geographic coordinate in degrees
            callback: Receives the UtmCoordinate
            error_callback: Receives an error description if the call fails
        """
        logger.info(f"Translating ({lat}, {lon}) from gps to utm coords...")

        def on_response(response: Message):
            try:
                coord = self.parse_response(response)
            except TransformError as e:
                logger.error(str(e))
                if error_callback:
                    error_callback(str(e))
                return
            logger.info(f"Finished: ({coord.x}, {coord.y})")
            callback(coord)

        self.bus.call_service(
            self.service_name,
            self.build_request(lat, lon),
            on_response,
            error_callback,
        )

"""
Location providers: pluggable sources for the rider's current position.

Implementations:
- LatestFixProvider: newest GPS fix a device pushed to /receive_gps.
"""

from typing import Optional

from .models import SessionLocal, GPSPoint
from .schemas import Coordinate


class LocationProvider:
    """Interface for the rider's position (WGS84 degrees)."""

    def current(self) -> Optional[Coordinate]:
        """Return the current coordinate, or None while no fix is available."""
        raise NotImplementedError


class LatestFixProvider(LocationProvider):
    """Reads the most recent stored GPSPoint for one device."""

    def __init__(self, device_id: str, session_factory=SessionLocal):
        self.device_id = device_id
        self._session_factory = session_factory

    def current(self) -> Optional[Coordinate]:
        with self._session_factory() as db:
            row = (
                db.query(GPSPoint)
                .filter(GPSPoint.device_id == self.device_id)
                .order_by(GPSPoint.ts.desc(), GPSPoint.id.desc())
                .first()
            )
            if not row:
                return None
            return Coordinate(lat=row.lat, lon=row.lon)

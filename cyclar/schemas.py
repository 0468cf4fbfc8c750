from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated


class SimpleDirection(str, Enum):
    """Reduced command alphabet shown on the display."""
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    STRAIGHT = "STRAIGHT"


class DeviceCommand(str, Enum):
    """Literal strings the ESP32 firmware understands."""
    LEFT = "left"
    RIGHT = "right"
    UP = "up"


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: Annotated[float, Field(..., ge=-90, le=90, description="Latitude")]
    lon: Annotated[float, Field(..., ge=-180, le=180, description="Longitude")]


class DirectionStep(BaseModel):
    """Single normalized route step (turn-by-turn instruction)"""
    model_config = ConfigDict(frozen=True)

    raw_instruction: str
    maneuver: str = "STRAIGHT"  # provider tag, e.g. "TURN_LEFT", "DEPART"
    simple: SimpleDirection = SimpleDirection.STRAIGHT
    distance_text: str = "0 ft"  # e.g., "450 ft", "1.2 mi"


class GPSIn(BaseModel):
    lat: Annotated[float, Field(..., ge=-90, le=90, description="Latitude")]
    lon: Annotated[float, Field(..., ge=-180, le=180, description="Longitude")]
    hdop: Optional[float] = Field(None, description="Horizontal dilution of precision")
    ts: Optional[str] = Field(None, description="ISO 8601 timestamp from device")
    device_id: str = Field("esp32-1", description="Device identifier")


class GPSOut(BaseModel):
    id: int
    device_id: str
    lat: float
    lon: float
    hdop: Optional[float] = None
    ts: datetime
    created_at: datetime


class PreviewIn(BaseModel):
    origin: Optional[str] = Field(None, description="Start address; server default if omitted")
    destination: Optional[str] = Field(None, description="Destination address; server default if omitted")


class LiveIn(BaseModel):
    destination: Optional[str] = Field(None, description="Destination address; server default if omitted")


class NavigationStatus(BaseModel):
    """Snapshot of the navigation controller"""
    mode: str  # idle | previewing | live | simulating
    destination: Optional[str] = None
    steps: List[DirectionStep] = []
    current_index: Optional[int] = None  # only while simulating
    error: Optional[str] = None
    connection_status: str = "Not Connected"

import logging
import os
import sys
from dotenv import load_dotenv

# Load .env if present
load_dotenv()

API_KEY = os.getenv("API_KEY", "change-me")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gps.sqlite3")

# SQLite needs this arg; Postgres doesn't.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Routing provider
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "")
ROUTES_API_URL = os.getenv("ROUTES_API_URL", "https://routes.googleapis.com/directions/v2:computeRoutes")

# Display device (ESP32 on the handlebars)
DEVICE_URL = os.getenv("DEVICE_URL", "http://10.103.207.13/")
DEVICE_ID = os.getenv("DEVICE_ID", "esp32-1")

DEFAULT_ORIGIN = os.getenv("DEFAULT_ORIGIN", "Houston Hall, Philadelphia")
DEFAULT_DESTINATION = os.getenv("DEFAULT_DESTINATION", "Penn Museum, Philadelphia")

# Seconds
LIVE_POLL_INTERVAL = float(os.getenv("LIVE_POLL_INTERVAL", "4"))
SIM_TICK_INTERVAL = float(os.getenv("SIM_TICK_INTERVAL", "3"))
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
_LOG_FORMAT = "%(asctime)s [%(levelname)-5s] %(name)-20s  %(message)s"


def setup_logging(level=None) -> None:
    """Configure the root logger once; later calls are no-ops."""
    root = logging.getLogger()
    if root.handlers:
        return
    lvl = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(lvl)

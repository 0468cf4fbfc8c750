import asyncio
from fastapi import FastAPI
from .routes import router
from .models import init_db
from .config import (
    DEVICE_ID, DEVICE_URL, GOOGLE_MAPS_API_KEY, LIVE_POLL_INTERVAL, SIM_TICK_INTERVAL, setup_logging,
)
from .device import DeviceCommandChannel
from .location import LatestFixProvider
from .navigation import NavigationController
from .routing import RouteFetcher
from .transport import RequestsTransport
from contextlib import asynccontextmanager


def build_transport():
    return RequestsTransport()


def build_controller(loop) -> NavigationController:
    transport = build_transport()
    return NavigationController(
        fetcher=RouteFetcher(transport, api_key=GOOGLE_MAPS_API_KEY),
        channel=DeviceCommandChannel(transport, url=DEVICE_URL),
        location=LatestFixProvider(DEVICE_ID),
        scheduler=loop,
        poll_interval=LIVE_POLL_INTERVAL,
        tick_interval=SIM_TICK_INTERVAL,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    setup_logging()
    init_db()
    app.state.controller = build_controller(asyncio.get_running_loop())
    yield
    # shutdown: no timer may outlive the app
    app.state.controller.shutdown()


app = FastAPI(title="CyclAR Navigator", lifespan=lifespan)
app.include_router(router)

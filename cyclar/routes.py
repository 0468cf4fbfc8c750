from fastapi import APIRouter, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from typing import Optional, List
from datetime import datetime, timezone

from .models import SessionLocal, GPSPoint
from .navigation import NavigationController, NavigationStateError
from .schemas import (
    DeviceCommand,
    GPSIn,
    GPSOut,
    LiveIn,
    NavigationStatus,
    PreviewIn,
)
from .config import API_KEY, DEFAULT_DESTINATION, DEFAULT_ORIGIN

router = APIRouter()


def _auth_or_401(x_api_key: Optional[str]):
    if x_api_key != API_KEY:
        raise HTTPException(status_code=401, detail="Unauthorized")


def _controller(request: Request) -> NavigationController:
    return request.app.state.controller


@router.get("/health")
def health():
    return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}


@router.get("/")
def root():
    return {"message": "CyclAR navigator is running"}


# ---------------------------------------------------------------------------
# GPS fixes (live-mode location source)
# ---------------------------------------------------------------------------

@router.post("/receive_gps", response_model=dict)
def receive_gps(data: GPSIn, x_api_key: Optional[str] = Header(None, alias="X-API-Key")):
    _auth_or_401(x_api_key)
    with SessionLocal() as db:
        point = GPSPoint(
            device_id=data.device_id,
            lat=float(data.lat),
            lon=float(data.lon),
            hdop=float(data.hdop) if data.hdop is not None else None,
            ts=datetime.now(timezone.utc),
        )
        db.add(point)
        db.commit()
        db.refresh(point)
    return JSONResponse(status_code=201, content={"ok": True, "id": point.id})


def _to_out(r: GPSPoint) -> GPSOut:
    return GPSOut(
        id=r.id,
        device_id=r.device_id,
        lat=r.lat,
        lon=r.lon,
        hdop=r.hdop,
        ts=r.ts,
        created_at=r.created_at,
    )


@router.get("/latest", response_model=GPSOut)
def latest(device_id: str = Query(..., description="Device ID")):
    with SessionLocal() as db:
        row = (
            db.query(GPSPoint)
            .filter(GPSPoint.device_id == device_id)
            .order_by(GPSPoint.ts.desc(), GPSPoint.id.desc())
            .first()
        )
        if not row:
            raise HTTPException(status_code=404, detail="No data for device_id")
        return _to_out(row)


@router.get("/track", response_model=List[GPSOut])
def track(device_id: str = Query(...), limit: int = Query(100, ge=1, le=1000)):
    with SessionLocal() as db:
        rows = (
            db.query(GPSPoint)
            .filter(GPSPoint.device_id == device_id)
            .order_by(GPSPoint.ts.desc(), GPSPoint.id.desc())
            .limit(limit)
            .all()
        )
        return [_to_out(r) for r in rows]


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

@router.get("/status", response_model=NavigationStatus)
async def status(request: Request):
    return _controller(request).snapshot()


@router.post("/preview", response_model=NavigationStatus)
async def preview(request: Request, body: Optional[PreviewIn] = None):
    """
    Fetch a bicycle route between two addresses and show it.
    Fetch errors are reported in the `error` field, not as HTTP errors.
    """
    body = body or PreviewIn()
    nav = _controller(request)
    try:
        pending = nav.request_preview(
            body.origin or DEFAULT_ORIGIN,
            body.destination or DEFAULT_DESTINATION,
        )
    except NavigationStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await pending
    return nav.snapshot()


@router.post("/live/enable", response_model=NavigationStatus)
async def live_enable(request: Request, body: Optional[LiveIn] = None):
    nav = _controller(request)
    nav.enable_live(body.destination if body else None)
    return nav.snapshot()


@router.post("/live/disable", response_model=NavigationStatus)
async def live_disable(request: Request):
    nav = _controller(request)
    nav.disable_live()
    return nav.snapshot()


@router.post("/simulation/start", response_model=NavigationStatus)
async def simulation_start(request: Request):
    nav = _controller(request)
    try:
        nav.start_simulation()
    except NavigationStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return nav.snapshot()


@router.post("/simulation/stop", response_model=NavigationStatus)
async def simulation_stop(request: Request):
    nav = _controller(request)
    nav.stop_simulation()
    return nav.snapshot()


@router.post("/device/{command}", response_model=NavigationStatus)
async def device_command(command: DeviceCommand, request: Request):
    """Manual left / right / up, independent of the navigation mode."""
    nav = _controller(request)
    await nav.send_manual(command)
    return nav.snapshot()

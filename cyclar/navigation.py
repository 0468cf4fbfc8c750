"""
Navigation controller: single source of truth for what the display shows.

Modes: Idle, Previewing, LiveNavigating, Simulating. Exactly one is active.
_enter() is the only place the mode kind changes and it always cancels the
timer owned by the previous mode first.

The controller lives on one event loop. It needs two things from it:
    scheduler.call_later(delay, callback) -> handle with .cancel()
    scheduler.run_in_executor(None, fn)   -> future with .add_done_callback()
An asyncio loop provides both. Network calls run in the executor and report
back on the loop; a route result is only applied if the mode epoch it was
issued under is still current.
"""

import logging
from dataclasses import dataclass, replace
from functools import partial
from typing import ClassVar, Optional, Tuple, Union

from .config import DEFAULT_DESTINATION, LIVE_POLL_INTERVAL, SIM_TICK_INTERVAL
from .device import DeviceSendError
from .routing import RouteFetchError
from .schemas import DeviceCommand, DirectionStep, NavigationStatus

log = logging.getLogger(__name__)

WAITING_FOR_GPS = "Waiting for GPS..."
SIMULATION_COMPLETE = "Simulation Complete"


class NavigationStateError(Exception):
    """Raised when a request is not valid in the current mode."""
    pass


@dataclass(frozen=True)
class Idle:
    name: ClassVar[str] = "idle"


@dataclass(frozen=True)
class Previewing:
    name: ClassVar[str] = "previewing"
    steps: Tuple[DirectionStep, ...]


@dataclass(frozen=True)
class LiveNavigating:
    name: ClassVar[str] = "live"
    poll_interval: float
    destination: str
    last_steps: Tuple[DirectionStep, ...] = ()


@dataclass(frozen=True)
class Simulating:
    name: ClassVar[str] = "simulating"
    steps: Tuple[DirectionStep, ...]
    current_index: int
    tick_interval: float


NavigationMode = Union[Idle, Previewing, LiveNavigating, Simulating]


class RepeatingTimer:
    """Re-arms itself after every tick until cancelled."""

    def __init__(self, scheduler, interval: float, callback):
        self.interval = interval
        self._scheduler = scheduler
        self._callback = callback
        self._handle = None
        self._cancelled = False

    def start(self) -> None:
        self._arm()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def active(self) -> bool:
        return not self._cancelled

    def _arm(self) -> None:
        self._handle = self._scheduler.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._handle = None
        try:
            self._callback()
        finally:
            # the callback may have cancelled us (e.g. simulation finished)
            if not self._cancelled:
                self._arm()


def device_command_for(simple) -> DeviceCommand:
    """left / right when the direction says so, otherwise up."""
    direction = str(getattr(simple, "value", simple) or "").lower()
    if "left" in direction:
        return DeviceCommand.LEFT
    if "right" in direction:
        return DeviceCommand.RIGHT
    return DeviceCommand.UP


def _attempt(fn, *args):
    """Run fn in the executor; expected failures come back as values."""
    try:
        return fn(*args), None
    except (RouteFetchError, DeviceSendError) as e:
        return None, e


class NavigationController:
    """
    Orchestrates the route fetcher and the device channel.

    Typical lifecycle:
        nav = NavigationController(fetcher, channel, location, loop)
        nav.request_preview("Houston Hall, Philadelphia", "Penn Museum, Philadelphia")
        nav.start_simulation()      # plays the previewed steps on the device
        nav.enable_live()           # stops playback, polls GPS every few seconds
        nav.shutdown()
    """

    def __init__(
        self,
        fetcher,
        channel,
        location,
        scheduler,
        poll_interval: float = LIVE_POLL_INTERVAL,
        tick_interval: float = SIM_TICK_INTERVAL,
        destination: str = DEFAULT_DESTINATION,
    ) -> None:
        self._fetcher = fetcher
        self._channel = channel
        self._location = location
        self._scheduler = scheduler
        self._poll_interval = poll_interval
        self._tick_interval = tick_interval

        self._mode: NavigationMode = Idle()
        self._timer: Optional[RepeatingTimer] = None
        self._epoch = 0

        self.destination = destination
        self._steps: Tuple[DirectionStep, ...] = ()
        self.error: Optional[str] = None
        self.connection_status = "Not Connected"

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def mode(self) -> NavigationMode:
        return self._mode

    @property
    def steps(self) -> Tuple[DirectionStep, ...]:
        """Steps currently displayed (survive a return to Idle)."""
        return self._steps

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and self._timer.active

    def snapshot(self) -> NavigationStatus:
        mode = self._mode
        return NavigationStatus(
            mode=mode.name,
            destination=self.destination,
            steps=list(self._steps),
            current_index=mode.current_index if isinstance(mode, Simulating) else None,
            error=self.error,
            connection_status=self.connection_status,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter(self, mode: NavigationMode) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._epoch += 1
        if mode.name != self._mode.name:
            log.info("Mode: %s -> %s", self._mode.name, mode.name)
        self._mode = mode

    def _start_timer(self, interval: float, callback) -> None:
        self._timer = RepeatingTimer(self._scheduler, interval, callback)
        self._timer.start()

    def _run_in_background(self, fn, on_done):
        future = self._scheduler.run_in_executor(None, fn)
        future.add_done_callback(on_done)
        return future

    def request_preview(self, origin: str, destination: str):
        """
        Fetch a route between two addresses for preview.
        Valid from Idle or Previewing. Returns the background future.
        """
        if not isinstance(self._mode, (Idle, Previewing)):
            raise NavigationStateError(f"Cannot preview a route while {self._mode.name}")
        epoch = self._epoch

        def apply(future):
            if future.cancelled():
                return
            steps, error = future.result()
            if epoch != self._epoch:
                log.info("Discarding preview result issued before a mode change")
                return
            if error is not None:
                log.warning("Preview failed: %s", error)
                self.error = str(error)
                return
            self.error = None
            self.destination = destination
            self._steps = tuple(steps)
            if isinstance(self._mode, Previewing):
                self._mode = replace(self._mode, steps=self._steps)
            else:
                # Idle owns no timer, and other previews in flight must still land
                log.info("Mode: %s -> %s", self._mode.name, Previewing.name)
                self._mode = Previewing(self._steps)

        return self._run_in_background(
            partial(_attempt, self._fetcher.fetch_route, origin, destination), apply
        )

    def enable_live(self, destination: Optional[str] = None) -> None:
        """Start polling the location provider; stops any running playback first."""
        if destination is not None:
            self.destination = destination
        if isinstance(self._mode, Simulating):
            log.info("Stopping simulation for live navigation")
        self._enter(LiveNavigating(self._poll_interval, self.destination))
        self._start_timer(self._poll_interval, self._live_tick)

    def disable_live(self) -> None:
        if not isinstance(self._mode, LiveNavigating):
            return
        self._enter(Idle())
        self.error = None

    def _live_tick(self) -> None:
        mode = self._mode
        if not isinstance(mode, LiveNavigating):
            return
        epoch = self._epoch

        def apply(future):
            if future.cancelled():
                return
            steps, error = future.result()
            if epoch != self._epoch or not isinstance(self._mode, LiveNavigating):
                log.info("Discarding live result issued before a mode change")
                return
            if error is not None:
                log.warning("Live update failed: %s", error)
                self.error = str(error)
                return
            if steps is None:
                self.error = WAITING_FOR_GPS
                return
            # only the closest upcoming maneuvers
            upcoming = tuple(steps[:2])
            self.error = None
            self._steps = upcoming
            self._mode = replace(self._mode, last_steps=upcoming)

        self._run_in_background(
            partial(_attempt, self._locate_and_fetch, mode.destination), apply
        )

    def _locate_and_fetch(self, destination: str):
        """Executor side of a live tick. None means no GPS fix yet, so no fetch."""
        current = self._location.current()
        if current is None:
            return None
        return self._fetcher.fetch_route(current, destination)

    def start_simulation(self) -> None:
        """Play the displayed steps on the device: first now, then one per tick."""
        if isinstance(self._mode, (LiveNavigating, Simulating)):
            raise NavigationStateError(f"Cannot start a simulation while {self._mode.name}")
        if not self._steps:
            raise NavigationStateError("No steps to simulate")

        log.info("Starting simulation over %d steps", len(self._steps))
        self._enter(Simulating(self._steps, 0, self._tick_interval))
        self._dispatch_current()
        self._start_timer(self._tick_interval, self._simulation_tick)

    def stop_simulation(self) -> None:
        if not isinstance(self._mode, Simulating):
            return
        self._enter(Idle())
        log.info("Simulation stopped")

    def _simulation_tick(self) -> None:
        mode = self._mode
        if not isinstance(mode, Simulating):
            return
        index = mode.current_index + 1
        self._mode = replace(mode, current_index=index)
        if index < len(mode.steps):
            self._dispatch_current()
        else:
            self._enter(Idle())
            self.connection_status = SIMULATION_COMPLETE

    def shutdown(self) -> None:
        """Cancel whatever timer is running and drop back to Idle."""
        self._enter(Idle())

    # ------------------------------------------------------------------
    # Device dispatch
    # ------------------------------------------------------------------

    def _dispatch_current(self) -> None:
        mode = self._mode
        step = mode.steps[mode.current_index]
        command = device_command_for(step.simple)
        log.info(
            "Simulating step %d (%s) -> sending %s",
            mode.current_index, step.simple.value, command.value,
        )
        self.connection_status = f"Simulating: {command.value}..."
        self._send(command, "Sent: {command} ({reply})", "Err: {detail}")

    def send_manual(self, command: DeviceCommand):
        """Send a single command regardless of mode. Returns the background future."""
        command = DeviceCommand(command)
        self.connection_status = f"Sending {command.value.capitalize()}..."
        return self._send(command, "Success: {reply}", "Error: {detail}")

    def _send(self, command: DeviceCommand, success_fmt: str, failure_fmt: str):
        # Replies are not ordered; whichever lands last owns the status line.
        def apply(future):
            if future.cancelled():
                return
            reply, error = future.result()
            if error is not None:
                log.warning("Sending %s failed: %s", command.value, error)
                self.connection_status = failure_fmt.format(command=command.value, detail=error)
            else:
                self.connection_status = success_fmt.format(command=command.value, reply=reply)

        return self._run_in_background(
            partial(_attempt, self._channel.send_command, command.value), apply
        )

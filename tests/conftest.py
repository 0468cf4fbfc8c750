import concurrent.futures
import heapq
import json
import os
import tempfile

import pytest

# Must be set before cyclar.config is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(), "gps.sqlite3")
os.environ["API_KEY"] = "test-key"

from cyclar.transport import HttpResponse  # noqa: E402


ROUTE_PAYLOAD = {
    "routes": [{
        "legs": [{
            "steps": [
                {
                    "navigationInstruction": {
                        "maneuver": "DEPART",
                        "instructions": "Head <b>north</b> on S 34th St",
                    },
                    "distanceMeters": 120,
                },
                {
                    "navigationInstruction": {
                        "maneuver": "TURN_LEFT",
                        "instructions": "Turn <b>left</b> onto Spruce St",
                    },
                    "distanceMeters": 400,
                },
                {
                    # no maneuver tag: direction comes from the text
                    "navigationInstruction": {
                        "instructions": "Turn <b>right</b> onto S 33rd St&nbsp;&amp; continue",
                    },
                    "distanceMeters": 2000,
                },
            ]
        }]
    }]
}


def json_response(payload, status_code=200) -> HttpResponse:
    return HttpResponse(status_code=status_code, body=json.dumps(payload).encode("utf-8"))


class ScriptedTransport:
    """Answers with queued replies (HttpResponse or exception), then `default`."""

    def __init__(self, *replies, default=None):
        self.replies = list(replies)
        self.default = default
        self.requests = []

    def send(self, request):
        self.requests.append(request)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def bodies(self):
        return [r.body for r in self.requests]


class _Handle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """
    Stand-in for the event loop.

    call_later() queues callbacks on a fake clock that only moves on
    advance(). run_in_executor() runs work inline, or holds it until
    complete_pending() when `defer` is set.
    """

    def __init__(self):
        self.now = 0.0
        self.defer = False
        self.pending = []
        self._timers = []
        self._seq = 0

    def call_later(self, delay, callback):
        handle = _Handle()
        self._seq += 1
        heapq.heappush(self._timers, (self.now + delay, self._seq, callback, handle))
        return handle

    def advance(self, seconds):
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target + 1e-9:
            when, _, callback, handle = heapq.heappop(self._timers)
            self.now = when
            if not handle.cancelled:
                callback()
        self.now = target

    @property
    def active_timers(self):
        return sum(1 for *_, handle in self._timers if not handle.cancelled)

    def run_in_executor(self, executor, fn):
        future = concurrent.futures.Future()
        if self.defer:
            self.pending.append((fn, future))
        else:
            future.set_result(fn())
        return future

    def complete_pending(self):
        pending, self.pending = self.pending, []
        for fn, future in pending:
            future.set_result(fn())


class FixedLocation:
    def __init__(self, position=None):
        self.position = position
        self.queries = 0

    def current(self):
        self.queries += 1
        return self.position


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def route_payload():
    return json.loads(json.dumps(ROUTE_PAYLOAD))

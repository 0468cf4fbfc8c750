"""Routing provider client.

Builds a bicycle computeRoutes request (Google Routes API) from an origin
address or coordinate plus a destination address, and parses the reply
into normalized DirectionStep objects.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional, Union

from .config import GOOGLE_MAPS_API_KEY, ROUTES_API_URL
from .normalizer import format_distance, reduce_to_command, strip_markup
from .schemas import Coordinate, DirectionStep
from .transport import HttpRequest, TransportError

log = logging.getLogger(__name__)

FIELD_MASK = "routes.legs.steps.navigationInstruction,routes.legs.steps.distanceMeters"

Origin = Union[str, Coordinate]


class RouteFetchError(Exception):
    """Base class for every way a route fetch can fail."""

    def __str__(self) -> str:
        return self.describe()

    def describe(self) -> str:
        return "Route request failed"


class InvalidRequestError(RouteFetchError):
    def __init__(self, reason: str = "invalid request"):
        super().__init__(reason)
        self.reason = reason

    def describe(self) -> str:
        return f"Invalid request: {self.reason}"


class NetworkError(RouteFetchError):
    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def describe(self) -> str:
        return f"Network error: {self.detail}"


class NoRoutesError(RouteFetchError):
    def describe(self) -> str:
        return "No routes found"


class ParseFailureError(RouteFetchError):
    def describe(self) -> str:
        return "Could not parse routing response"


def _origin_payload(origin: Origin) -> Dict[str, Any]:
    if isinstance(origin, Coordinate):
        return {"location": {"latLng": {"latitude": origin.lat, "longitude": origin.lon}}}
    if isinstance(origin, str):
        if not origin.strip():
            raise InvalidRequestError("origin address is empty")
        return {"address": origin}
    raise InvalidRequestError(f"unsupported origin type {type(origin).__name__}")


def _as_meters(value: Any) -> float:
    # bool is an int subclass but never a distance
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        meters = float(value)
    except OverflowError:
        # JSON integers have no size limit
        return 0.0
    return meters if math.isfinite(meters) else 0.0


def parse_step(step: Any) -> Optional[DirectionStep]:
    """Map one provider step to a DirectionStep, or None if it cannot be mapped."""
    if not isinstance(step, dict):
        return None
    nav = step.get("navigationInstruction")
    if not isinstance(nav, dict):
        nav = {}

    html = nav.get("instructions")
    plain = strip_markup(html if isinstance(html, str) else "")

    maneuver = nav.get("maneuver")
    if not isinstance(maneuver, str) or not maneuver:
        maneuver = "STRAIGHT"

    return DirectionStep(
        raw_instruction=plain,
        maneuver=maneuver,
        simple=reduce_to_command(maneuver, plain),
        distance_text=format_distance(_as_meters(step.get("distanceMeters"))),
    )


def parse_routes_response(body: Optional[bytes]) -> List[DirectionStep]:
    """
    Parse a computeRoutes response body.
    Requires routes[0].legs[0].steps; steps that cannot be mapped are dropped.
    """
    if not body:
        raise NetworkError("no data")
    try:
        root = json.loads(body)
    except ValueError as e:
        raise ParseFailureError() from e

    log.debug("Routes response: %s", root)

    try:
        routes = root["routes"]
        legs = routes[0]["legs"]
        steps = legs[0]["steps"]
    except (KeyError, IndexError, TypeError):
        raise NoRoutesError()
    if not isinstance(routes, list) or not isinstance(legs, list) or not isinstance(steps, list):
        raise NoRoutesError()

    mapped = [parse_step(s) for s in steps]
    return [s for s in mapped if s is not None]


class RouteFetcher:
    """
    Routing provider adapter.

    Sole responsibility: talk to the routes endpoint via the injected
    transport and return normalized steps. Every call is a fresh request;
    nothing is cached or retried.
    """

    def __init__(self, transport, api_key: Optional[str] = None, url: str = ROUTES_API_URL):
        self.transport = transport
        self.api_key = api_key if api_key is not None else GOOGLE_MAPS_API_KEY
        self.url = url

    def build_request(self, origin: Origin, destination: str) -> HttpRequest:
        if not isinstance(destination, str) or not destination.strip():
            raise InvalidRequestError("destination address is empty")
        body = {
            "origin": _origin_payload(origin),
            "destination": {"address": destination},
            "travelMode": "BICYCLE",
            # tells the API what to return
            "extraComputations": ["HTML_FORMATTED_NAVIGATION_INSTRUCTIONS"],
            "languageCode": "en-US",
        }
        try:
            data = json.dumps(body, allow_nan=False).encode("utf-8")
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e
        return HttpRequest(
            method="POST",
            url=self.url,
            headers={
                "Content-Type": "application/json",
                "X-Goog-Api-Key": self.api_key,
                "X-Goog-FieldMask": FIELD_MASK,
            },
            body=data,
        )

    def fetch_route(self, origin: Origin, destination: str) -> List[DirectionStep]:
        """
        Fetch bicycle directions from origin to destination.

        Returns:
            Steps in travel order (possibly fewer than the provider sent).
        Raises:
            InvalidRequestError, NetworkError, NoRoutesError, ParseFailureError
        """
        request = self.build_request(origin, destination)
        try:
            response = self.transport.send(request)
        except TransportError as e:
            raise NetworkError(str(e)) from e
        steps = parse_routes_response(response.body)
        log.info("Fetched route with %d steps (HTTP %s)", len(steps), response.status_code)
        return steps

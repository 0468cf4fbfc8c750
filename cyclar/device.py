import logging

from .config import DEVICE_URL
from .transport import HttpRequest, TransportError

log = logging.getLogger(__name__)


class DeviceSendError(Exception):
    """The command never produced a readable reply from the device."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class DeviceCommandChannel:
    """
    Sends one short text command ("left", "right", "up") to the display.

    No locking: callers decide whether dispatches may overlap.
    """

    def __init__(self, transport, url: str = DEVICE_URL):
        self.transport = transport
        self.url = url

    def send_command(self, text: str) -> str:
        """Return the device's raw reply text; any status code counts as delivered."""
        request = HttpRequest(
            method="POST",
            url=self.url,
            headers={"Content-Type": "text/plain"},
            body=text.encode("utf-8"),
        )
        try:
            response = self.transport.send(request)
        except TransportError as e:
            raise DeviceSendError(str(e)) from e

        if not response.body:
            raise DeviceSendError("no data")
        try:
            reply = response.body.decode("utf-8")
        except UnicodeDecodeError:
            raise DeviceSendError("no data")
        log.debug("Device replied %s to %r: %s", response.status_code, text, reply)
        return reply

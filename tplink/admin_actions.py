"""Administrative actions on the router.

Endpoints:
- GET userRpm/SysRebootRpm.htm?Reboot=Reboot - reboot; the router answers
  with an HTML page containing "Rebooting..." and "Completed!" once the
  reboot has been processed.
"""

import logging

from .client import ClientConfig, build_request, send
from .errors import EmptyBody, IncompleteReboot

logger = logging.getLogger(__name__)

REBOOT_PATH = "userRpm/SysRebootRpm.htm"
REBOOT_MARKERS = ("Rebooting...", "Completed!")


def decode_reboot_confirmation(body: bytes) -> str:
    """Check a reboot response for the completion markers.

    Returns:
        The decoded body, for logging.

    Raises:
        EmptyBody: body is empty.
        IncompleteReboot: either marker is missing.
    """
    if not body:
        raise EmptyBody("got empty body in response to reboot")

    text = body.decode("utf-8", errors="replace")
    if not all(marker in text for marker in REBOOT_MARKERS):
        raise IncompleteReboot(text)
    return text


async def reboot(config: ClientConfig) -> None:
    """Reboot the router and wait for its confirmation page."""
    request = build_request(config, "GET", REBOOT_PATH, params={"Reboot": "Reboot"})
    body = await send(config, request, "reboot")

    text = decode_reboot_confirmation(body)
    config.logger.info("reboot completed successfully...response from reboot call: %s", text)

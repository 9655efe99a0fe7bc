"""
Dahua Camera Client
===================

Thin async HTTP client for the two Dahua CGI endpoints the bridge needs:
the machine name query and the event manager attach stream.
"""

from typing import AsyncIterator, Optional

import httpx

from dahua_mqtt.events.schema import AlarmEvent
from dahua_mqtt.logging_utils import get_component_logger

logger = get_component_logger(__name__, "camera")

DEFAULT_PORT = "80"
NAME_PATH = "/cgi-bin/magicBox.cgi?action=getMachineName"
EVENT_PATH = "/cgi-bin/eventManager.cgi?action=attach&codes=[All]&heartbeat=5"


class CameraError(RuntimeError):
    """Camera answered, but not with what was asked for."""
    pass


def parse_event_line(line: str) -> Optional[AlarmEvent]:
    """
    Decode one line of the event manager stream.

    Args:
        line: A text line from the multipart body

    Returns:
        AlarmEvent, or None for boundaries, part headers, heartbeats and
        continuation lines of an event's data block

    Examples:
        >>> parse_event_line("Code=VideoMotion;action=Start;index=0")
        AlarmEvent(code='VideoMotion', action='Start', index=0)
        >>> parse_event_line("Heartbeat")
        None
    """
    line = line.strip()
    if not line.startswith("Code="):
        return None

    fields = {}
    for part in line.split(";"):
        key, _, value = part.partition("=")
        if key == "data":
            # Everything after data= is a JSON blob that may contain ';'
            break
        fields[key] = value

    try:
        return AlarmEvent(
            code=fields["Code"],
            action=fields["action"],
            index=int(fields["index"]),
        )
    except (KeyError, ValueError):
        logger.debug(
            f"Ignoring malformed event line: {line!r}",
            extra={"event": "event_line_malformed"},
        )
        return None


class DahuaCamera:
    """
    Dahua camera control/event client.

    Construction does no network I/O. All requests use HTTP digest auth.

    Args:
        host: Camera host name or IP
        port: Camera HTTP port (None = 80)
        username: Camera user
        password: Camera password
        timeout: Connect/read timeout in seconds for plain requests
        client: Optional preconfigured httpx.AsyncClient (tests inject one
            backed by httpx.MockTransport)

    Example:
        >>> camera = DahuaCamera("10.0.0.5", "80", "admin", "secret")
        >>> name = await camera.get_name()
        >>> async for event in camera.events():
        ...     print(event.code, event.action, event.index)
    """

    def __init__(
        self,
        host: str,
        port: Optional[str],
        username: str,
        password: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.host = host
        self.port = port or DEFAULT_PORT
        self.username = username
        self.timeout = timeout
        self.base_url = f"http://{self.host}:{self.port}"
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            auth=httpx.DigestAuth(username, password),
            timeout=timeout,
        )

    async def get_name(self) -> str:
        """
        Query the camera's display name.

        Returns:
            The name exactly as the camera reports it (not trimmed)

        Raises:
            CameraError: On a non-200 reply or a body without name=
            httpx.HTTPError: On transport failures
        """
        logger.debug(
            f"Requesting machine name from {self.base_url}",
            extra={"event": "name_request", "host": self.host},
        )
        response = await self._client.get(NAME_PATH)

        if response.status_code != 200:
            raise CameraError(
                f"Name query to {self.host} failed with status {response.status_code}"
            )

        for line in response.text.splitlines():
            key, sep, value = line.partition("=")
            if sep and key.strip() == "name":
                return value

        raise CameraError(f"Unexpected name reply from {self.host}: {response.text!r}")

    async def events(self) -> AsyncIterator[AlarmEvent]:
        """
        Attach to the event manager and yield decoded alarms.

        The camera sends a heartbeat every 5 seconds, so the stream has no
        read timeout. Iteration ends when the camera closes the stream.

        Raises:
            CameraError: If the camera refuses the attach request
            httpx.HTTPError: On transport failures
        """
        stream_timeout = httpx.Timeout(self.timeout, read=None)

        async with self._client.stream("GET", EVENT_PATH, timeout=stream_timeout) as response:
            if response.status_code != 200:
                await response.aread()
                raise CameraError(
                    f"Event attach to {self.host} failed with status {response.status_code}"
                )

            logger.info(
                f"Listening for events from {self.host}",
                extra={"event": "event_stream_attached", "host": self.host},
            )

            async for line in response.aiter_lines():
                event = parse_event_line(line)
                if event is not None:
                    yield event

    async def aclose(self) -> None:
        """Close the HTTP connection pool."""
        await self._client.aclose()

"""
Camera Session
==============

One authenticated connection to a single camera: name resolution and a
cancellable event subscription.
"""

import asyncio
from typing import Callable, Optional

from dahua_mqtt.bridge.camera import DahuaCamera
from dahua_mqtt.bridge.config import CameraAddress
from dahua_mqtt.events.schema import AlarmEvent
from dahua_mqtt.interfaces import CameraClient
from dahua_mqtt.logging_utils import get_component_logger

logger = get_component_logger(__name__, "session")

# (address, username, password) -> CameraClient
CameraClientFactory = Callable[[CameraAddress, str, str], CameraClient]


def dahua_client_factory(address: CameraAddress, username: str, password: str) -> CameraClient:
    return DahuaCamera(address.host, address.port, username, password)


class EventSubscription:
    """
    Handle for a running event subscription.

    Wraps the asyncio task that pumps events from the camera into the
    callback. Cancelling it stops delivery; nothing else is torn down.
    """

    def __init__(self, task: "asyncio.Task[None]"):
        self._task = task

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        self._task.cancel()

    async def wait(self) -> None:
        """Wait until the stream ends or the subscription is cancelled."""
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class CameraSession:
    """
    Session with a single camera.

    Args:
        address: Camera network location
        username: Camera user
        client: Camera client (built by CameraSession.open)

    Example:
        >>> session = CameraSession.open(CameraAddress.parse("10.0.0.5:80"), "admin", "pw")
        >>> name = await session.resolve_name()
        >>> subscription = session.subscribe_events(relay)
    """

    def __init__(self, address: CameraAddress, username: str, client: CameraClient):
        self.address = address
        self.username = username
        self._client = client
        self.name: Optional[str] = None
        self.subscription: Optional[EventSubscription] = None

    @classmethod
    def open(
        cls,
        address: CameraAddress,
        username: str,
        password: str,
        client_factory: CameraClientFactory = dahua_client_factory,
    ) -> "CameraSession":
        """Build a session. Performs no network I/O."""
        client = client_factory(address, username, password)
        return cls(address, username, client)

    async def resolve_name(self) -> str:
        """
        Fetch the camera's display name and remember it, trimmed.

        Errors propagate to the caller; nothing is retried.
        """
        name = (await self._client.get_name()).strip()
        self.name = name
        logger.info(
            f"Camera at {self.address} is named {name!r}",
            extra={"event": "name_resolved", "host": self.address.host, "camera": name},
        )
        return name

    def subscribe_events(self, on_event: Callable[[AlarmEvent], None]) -> EventSubscription:
        """
        Start delivering alarm events to on_event.

        Must be called from a running event loop, after resolve_name().
        Events are delivered in the order the camera sends them.

        Raises:
            RuntimeError: If the name has not been resolved yet
        """
        if self.name is None:
            raise RuntimeError(
                f"Cannot subscribe to {self.address} before its name is resolved"
            )
        if self.subscription is not None and not self.subscription.done:
            raise RuntimeError(f"Already subscribed to events from {self.address}")

        task = asyncio.get_running_loop().create_task(
            self._pump(on_event), name=f"events-{self.address}"
        )
        self.subscription = EventSubscription(task)
        return self.subscription

    async def _pump(self, on_event: Callable[[AlarmEvent], None]) -> None:
        try:
            async for event in self._client.events():
                on_event(event)
        except Exception as e:
            logger.error(
                f"Event stream from {self.name} ({self.address}) failed: {e}",
                extra={
                    "event": "event_stream_failed",
                    "host": self.address.host,
                    "camera": self.name,
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return

        logger.warning(
            f"Event stream from {self.name} ({self.address}) ended",
            extra={"event": "event_stream_ended", "host": self.address.host, "camera": self.name},
        )

    async def close(self) -> None:
        """Cancel the subscription and release the camera connection."""
        if self.subscription is not None:
            self.subscription.cancel()
            await self.subscription.wait()
        await self._client.aclose()

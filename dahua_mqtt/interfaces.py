"""
Interfaces for Dependency Injection
====================================

Protocols (interfaces) for decoupling from concrete implementations.

This allows:
- Testing with fake implementations (no MQTT broker, no camera, no network)
- Swapping implementations (e.g., replace paho.mqtt with another client)
- Clear contracts (documented interface methods)
"""

from typing import TYPE_CHECKING, Any, AsyncIterator, List, Protocol

from dahua_mqtt.events.schema import AlarmEvent

if TYPE_CHECKING:
    from dahua_mqtt.bridge.config import CameraAddress


class MessageBroker(Protocol):
    """
    Protocol for MQTT-like message broker.

    Minimal interface required by AlarmRelay (publish) and CameraBridge
    (connection lifecycle).

    Concrete implementation: paho.mqtt.client.Client
    Test implementation: FakeMessageBroker (see tests/unit/fakes.py)
    """

    def publish(
        self, topic: str, payload: str, qos: int = 0, retain: bool = False
    ) -> Any:
        """
        Publish message to topic.

        Returns:
            MQTTMessageInfo or equivalent (result.rc == 0 for success)
        """
        ...

    def connect_async(self, host: str, port: int = 1883, keepalive: int = 60) -> None:
        """Queue a connection; the network loop performs it."""
        ...

    def disconnect(self) -> None:
        """Disconnect from broker."""
        ...

    def loop_start(self) -> None:
        """Start background network loop (threaded)."""
        ...

    def loop_stop(self) -> None:
        """Stop background network loop."""
        ...


class CameraClient(Protocol):
    """
    Protocol for a camera control/event client.

    Concrete implementation: DahuaCamera (dahua_mqtt/bridge/camera.py)
    Test implementation: FakeCameraClient (see tests/unit/fakes.py)
    """

    async def get_name(self) -> str:
        """Query the camera's display name (untrimmed)."""
        ...

    def events(self) -> AsyncIterator[AlarmEvent]:
        """Stream decoded alarm events until the connection ends."""
        ...

    async def aclose(self) -> None:
        """Release the underlying connection."""
        ...


class DiscoveryClient(Protocol):
    """
    Protocol for a time-boxed camera discovery probe.

    Concrete implementation: OnvifDiscovery (dahua_mqtt/bridge/discovery.py)
    Test implementation: FakeDiscovery (see tests/unit/fakes.py)
    """

    async def probe(self, timeout: float) -> List["CameraAddress"]:
        """
        Probe the local network.

        Args:
            timeout: Seconds to wait for replies

        Returns:
            Addresses of cameras that answered
        """
        ...


"""
Camera Bridge - Main Orchestrator
==================================

Connects the MQTT client, resolves cameras, and wires an AlarmRelay to
every camera session once its name is known.

Startup order:
1. MQTT client (connection errors are logged, never fatal)
2. Camera resolution (discovery errors are fatal)
3. One independent setup task per camera
"""

import asyncio
import signal
from typing import Callable, List, Optional

import paho.mqtt.client as mqtt

from dahua_mqtt.bridge.config import BridgeConfig, CameraAddress
from dahua_mqtt.bridge.discovery import OnvifDiscovery
from dahua_mqtt.bridge.relay import AlarmRelay
from dahua_mqtt.bridge.resolver import resolve_cameras
from dahua_mqtt.bridge.session import CameraSession
from dahua_mqtt.interfaces import DiscoveryClient, MessageBroker
from dahua_mqtt.logging_utils import get_component_logger, trace_context

logger = get_component_logger(__name__, "bridge")

# (address, username, password) -> CameraSession
SessionFactory = Callable[[CameraAddress, str, str], CameraSession]


class CameraBridge:
    """
    Relays alarm events from Dahua cameras to an MQTT broker.

    Collaborators are injectable so tests can run without a broker,
    a network or a camera.

    Args:
        config: BridgeConfig instance
        mqtt_client: MQTT client (default: paho client built from config)
        discovery: Discovery client (default: OnvifDiscovery when config.discover)
        session_factory: Builds camera sessions (default: CameraSession.open)

    Example:
        >>> config = BridgeConfig(
        ...     mqtt_url="mqtt://localhost",
        ...     username="admin",
        ...     password="secret",
        ...     cams=["10.0.0.5:80"],
        ... )
        >>> bridge = CameraBridge(config)
        >>> asyncio.run(bridge.run())  # Runs until bridge.stop()
    """

    def __init__(
        self,
        config: BridgeConfig,
        mqtt_client: Optional[MessageBroker] = None,
        discovery: Optional[DiscoveryClient] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.config = config
        self.mqtt_client = mqtt_client
        self.discovery = discovery
        if self.discovery is None and config.discover:
            self.discovery = OnvifDiscovery()
        self.session_factory = session_factory or CameraSession.open

        self.sessions: List[CameraSession] = []
        self._setup_tasks: List["asyncio.Task[None]"] = []
        self._stop_event: Optional[asyncio.Event] = None
        self._stop_requested = False

    async def run(self) -> None:
        """
        Start the bridge and run until stop() is called.

        Raises:
            DiscoveryError: If discovery is enabled and the probe fails
        """
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()

        logger.info(
            "Starting camera bridge",
            extra={"event": "bridge_start", **self.config.to_status_dict()},
        )

        try:
            self._connect_mqtt()

            cameras = await resolve_cameras(self.config, self.discovery)
            loop = asyncio.get_running_loop()
            for address in cameras:
                self._setup_tasks.append(
                    loop.create_task(self._start_camera(address), name=f"setup-{address}")
                )

            logger.info(
                f"Bridge running with {len(cameras)} cameras",
                extra={"event": "bridge_running", "camera_count": len(cameras)},
            )
            await self._stop_event.wait()
        finally:
            await self._cleanup()

    def stop(self) -> None:
        """Ask run() to shut down. Safe to call before run() starts."""
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    def install_signal_handlers(self) -> None:
        """Stop the bridge on SIGINT/SIGTERM (must run inside the event loop)."""
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self._signal_handler, signum)
            except NotImplementedError:
                # Windows event loops have no signal support; Ctrl+C still
                # raises KeyboardInterrupt out of asyncio.run
                pass

    # ========================================================================
    # Private: Camera setup
    # ========================================================================

    async def _start_camera(self, address: CameraAddress) -> None:
        """Open a session, resolve its name, then attach the relay."""
        with trace_context(f"cam-{address.host}"):
            logger.info(
                f"Connecting to camera at: {address.host}",
                extra={"event": "camera_connect", "host": address.host, "port": address.port},
            )
            try:
                session = self.session_factory(address, self.config.username, self.config.password)
            except Exception as e:
                logger.error(
                    f"Failed to open session to camera at {address}: {e}",
                    extra={
                        "event": "camera_open_failed",
                        "host": address.host,
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                return
            self.sessions.append(session)

            try:
                await session.resolve_name()
            except Exception as e:
                logger.error(
                    f"Failed to get name of camera at {address}: {e}",
                    extra={
                        "event": "camera_name_failed",
                        "host": address.host,
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                return

            relay = AlarmRelay(
                self.mqtt_client,
                self.config.mqtt_topic_root,
                session,
                qos=self.config.mqtt_qos,
            )
            session.subscribe_events(relay)

    # ========================================================================
    # Private: MQTT
    # ========================================================================

    def _connect_mqtt(self) -> None:
        """Create (if needed) and connect the MQTT client in the background."""
        connection = self.config.mqtt_connection()

        if self.mqtt_client is None:
            self.mqtt_client = self._create_mqtt_client()

        logger.info(
            f"Connecting to MQTT broker at {connection.host}:{connection.port}",
            extra={
                "event": "mqtt_connection_start",
                "mqtt_host": connection.host,
                "mqtt_port": connection.port,
            },
        )
        # connect_async lets the network loop own connecting and reconnecting,
        # so an unreachable broker never blocks camera setup
        self.mqtt_client.connect_async(connection.host, connection.port)
        self.mqtt_client.loop_start()

    def _create_mqtt_client(self) -> mqtt.Client:
        connection = self.config.mqtt_connection()

        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.config.mqtt_client_id,
            transport=connection.transport,
        )
        if connection.transport == "websockets":
            client.ws_set_options(path=connection.path)
        if connection.tls:
            client.tls_set()
        if connection.username:
            client.username_pw_set(connection.username, connection.password)

        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_disconnect = self._on_disconnect
        return client

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        """Callback when the broker answers CONNECT"""
        if reason_code.is_failure:
            logger.error(
                f"Error from mqtt broker: {reason_code}",
                extra={"event": "mqtt_connect_failed", "reason_code": str(reason_code)},
            )
        else:
            connection = self.config.mqtt_connection()
            logger.info(
                f"Connected to mqtt broker at {connection.host}:{connection.port}",
                extra={"event": "mqtt_connected"},
            )

    def _on_connect_fail(self, client, userdata):
        """Callback when the broker cannot be reached (refused, DNS, unreachable)"""
        connection = self.config.mqtt_connection()
        logger.error(
            f"Error from mqtt broker: cannot connect to {connection.host}:{connection.port}",
            extra={
                "event": "mqtt_connect_failed",
                "mqtt_host": connection.host,
                "mqtt_port": connection.port,
            },
        )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        """Callback when the broker connection drops"""
        if self._stop_requested:
            return
        logger.warning(
            f"Disconnected from mqtt broker: {reason_code}",
            extra={"event": "mqtt_disconnected", "reason_code": str(reason_code)},
        )

    # ========================================================================
    # Private: Shutdown
    # ========================================================================

    async def _cleanup(self) -> None:
        """Cancel pending setups, close sessions, disconnect MQTT."""
        self._stop_requested = True
        logger.info(
            "Performing shutdown cleanup",
            extra={"event": "shutdown_cleanup_start"},
        )

        for task in self._setup_tasks:
            task.cancel()
        await asyncio.gather(*self._setup_tasks, return_exceptions=True)

        results = await asyncio.gather(
            *(session.close() for session in self.sessions), return_exceptions=True
        )
        for session, result in zip(self.sessions, results):
            if isinstance(result, Exception):
                logger.warning(
                    f"Error closing camera session {session.address}: {result}",
                    extra={"event": "session_close_failed", "host": session.address.host},
                )

        if self.mqtt_client is not None:
            self.mqtt_client.disconnect()
            self.mqtt_client.loop_stop()

        logger.info("Camera bridge stopped", extra={"event": "bridge_stopped"})

    def _signal_handler(self, signum):
        """Handle termination signals"""
        logger.info(
            f"Received signal {signum}, shutting down...",
            extra={"event": "signal_received", "signal": signum},
        )
        self.stop()

"""
Dahua MQTT Bridge
=================

Republishes alarm events from Dahua network cameras on an MQTT broker.

Usage:
    import asyncio
    from dahua_mqtt.bridge import BridgeConfig, CameraBridge

    config = BridgeConfig(
        mqtt_url="mqtt://localhost",
        username="admin",
        password="secret",
        cams=["10.0.0.5:80"],
    )
    asyncio.run(CameraBridge(config).run())
"""

from dahua_mqtt.events import AlarmEvent, AlarmMessage

__version__ = "0.1.0"

# Bridge components pull in paho-mqtt, httpx and wsdiscovery; import them
# on first use so the event schemas stay importable on their own
def __getattr__(name):
    if name in ("CameraBridge", "BridgeConfig"):
        from dahua_mqtt import bridge
        return getattr(bridge, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

__all__ = [
    "CameraBridge",
    "BridgeConfig",
    "AlarmEvent",
    "AlarmMessage",
]

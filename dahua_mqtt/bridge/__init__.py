"""
Camera Bridge - Dahua Alarms to MQTT
=====================================

Resolves cameras, keeps a session per camera, and relays alarm events
to the MQTT broker.
"""

from dahua_mqtt.bridge.bridge import CameraBridge
from dahua_mqtt.bridge.camera import CameraError, DahuaCamera
from dahua_mqtt.bridge.config import (
    BridgeConfig,
    CameraAddress,
    ConfigValidationError,
    NoCamerasError,
)
from dahua_mqtt.bridge.discovery import DiscoveryError, OnvifDiscovery
from dahua_mqtt.bridge.relay import AlarmRelay
from dahua_mqtt.bridge.resolver import resolve_cameras
from dahua_mqtt.bridge.session import CameraSession, EventSubscription

__all__ = [
    "CameraBridge",
    "BridgeConfig",
    "CameraAddress",
    "ConfigValidationError",
    "NoCamerasError",
    "DahuaCamera",
    "CameraError",
    "OnvifDiscovery",
    "DiscoveryError",
    "CameraSession",
    "EventSubscription",
    "AlarmRelay",
    "resolve_cameras",
]

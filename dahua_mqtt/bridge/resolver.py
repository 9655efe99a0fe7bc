"""
Camera Address Resolver
=======================

Produces the final list of cameras to connect to: explicit addresses
from the configuration followed by whatever discovery found.
"""

from typing import List, Optional

from dahua_mqtt.bridge.config import BridgeConfig, CameraAddress
from dahua_mqtt.bridge.discovery import DiscoveryError
from dahua_mqtt.interfaces import DiscoveryClient
from dahua_mqtt.logging_utils import get_component_logger

logger = get_component_logger(__name__, "resolver")


async def resolve_cameras(
    config: BridgeConfig, discovery: Optional[DiscoveryClient] = None
) -> List[CameraAddress]:
    """
    Resolve the cameras the bridge should connect to.

    Discovered cameras are appended after the explicit ones; duplicates
    are kept.

    Args:
        config: Validated bridge configuration
        discovery: Discovery client, required when config.discover is set

    Returns:
        Camera addresses in connection order

    Raises:
        DiscoveryError: If the discovery probe fails
    """
    cameras = config.camera_addresses()

    if not config.discover:
        return cameras

    if discovery is None:
        raise DiscoveryError("Discovery is enabled but no discovery client was provided")

    try:
        discovered = await discovery.probe(config.discovery_timeout)
    except Exception as e:
        logger.error(
            f"Failed to discover cameras: {e}",
            extra={"event": "discovery_failed", "error_type": type(e).__name__},
        )
        if isinstance(e, DiscoveryError):
            raise
        raise DiscoveryError(str(e)) from e

    logger.info(
        f"Resolved {len(cameras)} configured and {len(discovered)} discovered cameras",
        extra={
            "event": "cameras_resolved",
            "configured_count": len(cameras),
            "discovered_count": len(discovered),
        },
    )
    return cameras + list(discovered)

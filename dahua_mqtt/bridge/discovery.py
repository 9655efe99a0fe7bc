"""
ONVIF Camera Discovery
======================

Time-boxed WS-Discovery probe returning the addresses of ONVIF cameras
on the local network.
"""

import asyncio
from typing import List, Optional
from urllib.parse import urlparse

from wsdiscovery.discovery import ThreadedWSDiscovery as WSDiscovery
from wsdiscovery.qname import QName

from dahua_mqtt.bridge.config import CameraAddress
from dahua_mqtt.logging_utils import get_component_logger

logger = get_component_logger(__name__, "discovery")

ONVIF_DEVICE_TYPE = QName("http://www.onvif.org/ver10/network/wsdl", "NetworkVideoTransmitter")


class DiscoveryError(RuntimeError):
    """Discovery probe failed."""
    pass


def address_from_xaddr(xaddr: str) -> Optional[CameraAddress]:
    """
    Convert an ONVIF service XAddr URL into a CameraAddress.

    Examples:
        >>> address_from_xaddr("http://10.0.0.7/onvif/device_service")
        CameraAddress(host='10.0.0.7', port=None)
        >>> address_from_xaddr("http://10.0.0.8:8080/onvif/device_service")
        CameraAddress(host='10.0.0.8', port='8080')
    """
    parsed = urlparse(xaddr)
    if not parsed.hostname:
        return None
    port = str(parsed.port) if parsed.port else None
    return CameraAddress(host=parsed.hostname, port=port)


class OnvifDiscovery:
    """
    WS-Discovery client for ONVIF network video transmitters.

    The wsdiscovery library blocks for the whole probe window, so the probe
    runs in the loop's default executor.

    Example:
        >>> cams = await OnvifDiscovery().probe(timeout=5)
    """

    def __init__(self, types: Optional[list] = None):
        self.types = types if types is not None else [ONVIF_DEVICE_TYPE]

    async def probe(self, timeout: float) -> List[CameraAddress]:
        """
        Probe the network for cameras.

        Args:
            timeout: Seconds to wait for probe matches

        Returns:
            One address per discovered service, in reply order

        Raises:
            DiscoveryError: If the probe cannot run
        """
        logger.info(
            f"Starting ONVIF camera discovery (timeout={timeout}s)",
            extra={"event": "discovery_start", "timeout": timeout},
        )

        loop = asyncio.get_running_loop()
        try:
            xaddr_lists = await loop.run_in_executor(None, self._search, timeout)
        except Exception as e:
            raise DiscoveryError(f"WS-Discovery probe failed: {e}") from e

        addresses = []
        for xaddrs in xaddr_lists:
            # First XAddr is the device service endpoint
            address = address_from_xaddr(xaddrs[0]) if xaddrs else None
            if address is None:
                logger.warning(
                    f"Skipping discovered service without usable XAddr: {xaddrs}",
                    extra={"event": "discovery_bad_xaddr"},
                )
                continue
            addresses.append(address)

        logger.info(
            f"Discovered {len(addresses)} cameras",
            extra={"event": "discovery_complete", "camera_count": len(addresses)},
        )
        return addresses

    def _search(self, timeout: float) -> List[List[str]]:
        """Run the blocking WS-Discovery search; returns XAddrs per service."""
        wsd = WSDiscovery()
        wsd.start()
        try:
            services = wsd.searchServices(types=self.types, timeout=timeout)
            return [list(service.getXAddrs()) for service in services]
        finally:
            wsd.stop()

"""
CLI entry point for dahua-mqtt
"""

import asyncio
import sys

import click

from dahua_mqtt import __version__
from dahua_mqtt.bridge import (
    BridgeConfig,
    CameraBridge,
    ConfigValidationError,
    DiscoveryError,
    NoCamerasError,
)
from dahua_mqtt.events.protocol import DEFAULT_TOPIC_ROOT
from dahua_mqtt.logging_utils import get_component_logger, setup_structured_logging

logger = get_component_logger(__name__, "cli")

EXIT_NO_CAMERAS = 1
EXIT_FATAL = 1


async def _run_bridge(bridge: CameraBridge) -> None:
    bridge.install_signal_handlers()
    await bridge.run()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__)
@click.option("-m", "--mqtt", "mqtt_url", envvar="MQTT", required=True, help="MQTT URL")
@click.option(
    "-r",
    "--mqtt-topic-root",
    envvar="MQTT_TOPIC_ROOT",
    default=DEFAULT_TOPIC_ROOT,
    show_default=True,
    help="Topic root to post messages to",
)
@click.option(
    "-u", "--username", envvar="USERNAME", required=True,
    help="Username to connect to cameras",
)
@click.option(
    "-p", "--password", envvar="PASSWORD", required=True,
    help="Password to connect to cameras",
)
@click.option(
    "-l",
    "--log-level",
    envvar="LOG_LEVEL",
    default="info",
    show_default=True,
    help="Logging level (debug/info/warn/error)",
)
@click.option(
    "-d",
    "--discover",
    envvar="DISCOVER",
    is_flag=True,
    default=False,
    help="Discover local cameras with ONVIF",
)
@click.option(
    "-c",
    "--cam",
    "cams",
    envvar="CAM",
    multiple=True,
    help="Camera as <hostname>:<port> (or omit :<port> for default port). Repeatable.",
)
@click.option(
    "--discovery-timeout",
    envvar="DISCOVERY_TIMEOUT",
    type=float,
    default=5.0,
    show_default=True,
    help="Seconds to wait for ONVIF discovery replies",
)
@click.option(
    "--json-logs",
    envvar="JSON_LOGS",
    is_flag=True,
    default=False,
    help="Output logs in JSON format for log aggregation (Elasticsearch, Loki, etc.)",
)
def main(mqtt_url, mqtt_topic_root, username, password, log_level, discover, cams, discovery_timeout, json_logs):
    """Relay Dahua camera alarm events to an MQTT broker"""
    try:
        setup_structured_logging(level=log_level, json_format=json_logs)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="'--log-level'")

    try:
        config = BridgeConfig(
            mqtt_url=mqtt_url,
            username=username,
            password=password,
            mqtt_topic_root=mqtt_topic_root,
            cams=list(cams),
            discover=discover,
            discovery_timeout=discovery_timeout,
            log_level=log_level,
            json_logs=json_logs,
        )
    except NoCamerasError as e:
        logger.error(str(e), extra={"event": "no_cameras"})
        sys.exit(EXIT_NO_CAMERAS)
    except ConfigValidationError as e:
        logger.error(f"Invalid configuration: {e}", extra={"event": "config_invalid"})
        sys.exit(EXIT_FATAL)

    bridge = CameraBridge(config)

    try:
        asyncio.run(_run_bridge(bridge))
    except DiscoveryError as e:
        logger.error(
            f"Camera discovery failed, exiting: {e}",
            extra={"event": "discovery_fatal"},
        )
        sys.exit(EXIT_FATAL)
    except KeyboardInterrupt:
        logger.info("Interrupted", extra={"event": "keyboard_interrupt"})


if __name__ == "__main__":
    main()

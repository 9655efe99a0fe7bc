"""
MQTT Alarm Relay
================

Callback that publishes a camera's alarm events to the MQTT broker.
Compatible with CameraSession.subscribe_events.
"""

import paho.mqtt.client as mqtt

from dahua_mqtt.bridge.session import CameraSession
from dahua_mqtt.events.protocol import topic_for_alarm
from dahua_mqtt.events.schema import AlarmEvent, AlarmMessage
from dahua_mqtt.interfaces import MessageBroker
from dahua_mqtt.logging_utils import get_component_logger

logger = get_component_logger(__name__, "relay")


class AlarmRelay:
    """
    Publishes alarm events from one camera session to MQTT.

    Publishing is fire-and-forget: nothing waits for the broker to
    acknowledge, and failed publishes are logged, not retried.

    Args:
        mqtt_client: Shared MQTT client (MessageBroker protocol)
        topic_root: Topic prefix (e.g. "cam/dahua")
        session: Camera session with a resolved name
        qos: MQTT QoS for alarm messages

    Example:
        >>> relay = AlarmRelay(client, "cam/dahua", session)
        >>> session.subscribe_events(relay)
    """

    def __init__(self, mqtt_client: MessageBroker, topic_root: str, session: CameraSession, qos: int = 0):
        if session.name is None:
            raise ValueError(f"Camera at {session.address} has no resolved name")

        self.client = mqtt_client
        self.topic_root = topic_root
        self.session = session
        self.qos = qos

    def build_message(self, event: AlarmEvent) -> AlarmMessage:
        """Combine the event with the session's origin fields."""
        return AlarmMessage(
            host=self.session.address.host,
            port=self.session.address.port,
            name=self.session.name,
            code=event.code,
            action=event.action,
            index=event.index,
        )

    def __call__(self, event: AlarmEvent) -> None:
        topic = topic_for_alarm(self.session.name, event, self.topic_root)
        log_extra = {
            "event": "alarm_received",
            "camera": self.session.name,
            "code": event.code,
            "action": event.action,
            "index": event.index,
            "topic": topic,
        }
        logger.debug(f"Received alarm {event.code}, {event.action}, {event.index}", extra=log_extra)
        logger.debug(f"Publishing to {topic}", extra={**log_extra, "event": "alarm_publish"})

        try:
            result = self.client.publish(topic, self.build_message(event).to_payload(), qos=self.qos)
        except Exception as e:
            logger.error(
                f"Error publishing alarm to {topic}: {e}",
                extra={**log_extra, "event": "alarm_publish_error", "error_type": type(e).__name__},
            )
            return

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(
                f"Failed to publish to {topic}: {mqtt.error_string(result.rc)}",
                extra={**log_extra, "event": "alarm_publish_failed"},
            )

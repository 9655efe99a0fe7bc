"""
Event Protocol for the Dahua MQTT Bridge
=========================================

Alarm message schemas and topic utilities.
"""

from dahua_mqtt.events.protocol import (
    DEFAULT_TOPIC_ROOT,
    parse_alarm_topic,
    topic_for_alarm,
)
from dahua_mqtt.events.schema import AlarmEvent, AlarmMessage

__all__ = [
    "AlarmEvent",
    "AlarmMessage",
    "DEFAULT_TOPIC_ROOT",
    "topic_for_alarm",
    "parse_alarm_topic",
]

"""
MQTT Protocol Utilities
========================

Topic naming conventions and parsing utilities for alarm messages.
"""

from typing import Optional

from dahua_mqtt.events.schema import AlarmEvent

DEFAULT_TOPIC_ROOT = "cam/dahua"


def topic_for_alarm(name: str, event: AlarmEvent, root: str = DEFAULT_TOPIC_ROOT) -> str:
    """
    Generate the MQTT topic for an alarm event.

    Args:
        name: Resolved camera name
        event: Decoded alarm event
        root: Topic root (default: "cam/dahua")

    Returns:
        MQTT topic string

    Examples:
        >>> topic_for_alarm("Garage", AlarmEvent(code="VideoMotion", action="Start", index=0))
        'cam/dahua/name/Garage/code/VideoMotion/action/Start/index/0'
    """
    return (
        f"{root}/name/{name}/code/{event.code}"
        f"/action/{event.action}/index/{event.index}"
    )


def parse_alarm_topic(topic: str, root: str = DEFAULT_TOPIC_ROOT) -> Optional[dict]:
    """
    Extract camera name and event fields from an alarm topic.

    Args:
        topic: MQTT topic string
        root: Topic root the topic was published under

    Returns:
        Dict with name, code, action and index, or None if the topic
        does not follow the alarm layout

    Examples:
        >>> parse_alarm_topic("cam/dahua/name/Garage/code/VideoMotion/action/Start/index/0")
        {'name': 'Garage', 'code': 'VideoMotion', 'action': 'Start', 'index': 0}
        >>> parse_alarm_topic("other/topic")
        None
    """
    prefix = f"{root}/"
    if not topic.startswith(prefix):
        return None

    parts = topic[len(prefix):].split("/")
    if len(parts) != 8 or parts[0::2] != ["name", "code", "action", "index"]:
        return None

    try:
        index = int(parts[7])
    except ValueError:
        return None

    return {"name": parts[1], "code": parts[3], "action": parts[5], "index": index}

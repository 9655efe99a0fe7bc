"""
Unit tests for alarm event schemas and topic protocol
"""

import json

import pytest

from dahua_mqtt.events import (
    AlarmEvent,
    AlarmMessage,
    parse_alarm_topic,
    topic_for_alarm,
)


class TestAlarmEvent:
    def test_create_event(self):
        event = AlarmEvent(code="VideoMotion", action="Start", index=0)
        assert event.code == "VideoMotion"
        assert event.action == "Start"
        assert event.index == 0

    def test_event_is_immutable(self):
        event = AlarmEvent(code="VideoMotion", action="Start", index=0)
        with pytest.raises(Exception):  # Pydantic frozen instance error
            event.code = "AlarmLocal"

    def test_index_must_be_integer(self):
        with pytest.raises(Exception):  # Pydantic validation error
            AlarmEvent(code="VideoMotion", action="Start", index="first")


class TestAlarmMessage:
    def test_payload_has_exactly_six_fields(self):
        message = AlarmMessage(
            host="10.0.0.5", port="80", name="Garage",
            code="VideoMotion", action="Start", index=0,
        )
        data = json.loads(message.to_payload())
        assert data == {
            "host": "10.0.0.5",
            "port": "80",
            "name": "Garage",
            "code": "VideoMotion",
            "action": "Start",
            "index": 0,
        }

    def test_payload_is_compact_json(self):
        message = AlarmMessage(
            host="10.0.0.5", port="80", name="Garage",
            code="VideoMotion", action="Start", index=0,
        )
        assert message.to_payload() == (
            '{"host":"10.0.0.5","port":"80","name":"Garage",'
            '"code":"VideoMotion","action":"Start","index":0}'
        )

    def test_unknown_port_is_left_out(self):
        message = AlarmMessage(
            host="garage-cam", name="Garage",
            code="VideoMotion", action="Stop", index=1,
        )
        data = json.loads(message.to_payload())
        assert "port" not in data
        assert data["index"] == 1


class TestTopicProtocol:
    def test_topic_for_alarm_default_root(self):
        event = AlarmEvent(code="VideoMotion", action="Start", index=0)
        assert (
            topic_for_alarm("Garage", event)
            == "cam/dahua/name/Garage/code/VideoMotion/action/Start/index/0"
        )

    def test_topic_for_alarm_custom_root(self):
        event = AlarmEvent(code="CrossLineDetection", action="Pulse", index=3)
        assert (
            topic_for_alarm("Front Door", event, root="home/cams")
            == "home/cams/name/Front Door/code/CrossLineDetection/action/Pulse/index/3"
        )

    def test_parse_alarm_topic(self):
        parsed = parse_alarm_topic("cam/dahua/name/Garage/code/VideoMotion/action/Start/index/0")
        assert parsed == {"name": "Garage", "code": "VideoMotion", "action": "Start", "index": 0}

    def test_parse_reverses_topic_for_alarm(self):
        event = AlarmEvent(code="AlarmLocal", action="Stop", index=2)
        topic = topic_for_alarm("Yard", event, root="a/b/c")
        assert parse_alarm_topic(topic, root="a/b/c") == {
            "name": "Yard", "code": "AlarmLocal", "action": "Stop", "index": 2,
        }

    def test_parse_invalid_topics(self):
        assert parse_alarm_topic("other/topic") is None
        assert parse_alarm_topic("cam/dahua/name/Garage") is None
        assert parse_alarm_topic("cam/dahua/name/G/code/C/action/A/index/x") is None
        assert parse_alarm_topic("cam/dahua/nom/G/code/C/action/A/index/0") is None
        assert parse_alarm_topic("cam/dahuaX/name/G/code/C/action/A/index/0") is None

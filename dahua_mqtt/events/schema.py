"""
Event Schema for the Dahua MQTT Bridge
=======================================

Pydantic models for alarm events decoded from a camera and the
messages published to MQTT.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AlarmEvent(BaseModel):
    """Alarm decoded from a camera's event stream"""

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Event code (e.g. VideoMotion, CrossLineDetection)")
    action: str = Field(description="Event action (e.g. Start, Stop, Pulse)")
    index: int = Field(description="Channel index the event refers to")


class AlarmMessage(BaseModel):
    """Alarm message published to MQTT"""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "host": "10.0.0.5",
                "port": "80",
                "name": "Garage",
                "code": "VideoMotion",
                "action": "Start",
                "index": 0,
            }
        },
    )

    # Origin
    host: str = Field(description="Camera host the event came from")
    port: Optional[str] = Field(
        default=None, description="Camera port as configured (None = client default)"
    )
    name: str = Field(description="Camera display name (trimmed)")

    # Event
    code: str = Field(description="Event code")
    action: str = Field(description="Event action")
    index: int = Field(description="Channel index")

    def to_payload(self) -> str:
        """
        Serialize to the JSON text published on the bus.

        An unknown port is left out of the payload rather than sent as null.
        """
        return self.model_dump_json(exclude_none=True)

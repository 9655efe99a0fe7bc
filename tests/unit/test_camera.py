"""
Unit tests for the Dahua camera client

Uses httpx.MockTransport, so no camera is needed.
"""

import httpx
import pytest

from dahua_mqtt.bridge.camera import CameraError, DahuaCamera, parse_event_line
from dahua_mqtt.events.schema import AlarmEvent

EVENT_STREAM = (
    b"--myboundary\r\n"
    b"Content-Type: text/plain\r\n"
    b"Content-Length: 37\r\n"
    b"\r\n"
    b"Code=VideoMotion;action=Start;index=0\r\n"
    b"\r\n"
    b"--myboundary\r\n"
    b"Content-Type: text/plain\r\n"
    b"Content-Length: 9\r\n"
    b"\r\n"
    b"Heartbeat\r\n"
    b"\r\n"
    b"--myboundary\r\n"
    b"Content-Type: text/plain\r\n"
    b"\r\n"
    b"Code=CrossLineDetection;action=Start;index=1;data={\n"
    b'   "Name" : "Rule1;North"\n'
    b"}\r\n"
    b"\r\n"
    b"--myboundary\r\n"
    b"Content-Type: text/plain\r\n"
    b"\r\n"
    b"Code=VideoMotion;action=Stop;index=0\r\n"
    b"\r\n"
)


def make_camera(handler) -> DahuaCamera:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://10.0.0.5:80"
    )
    return DahuaCamera("10.0.0.5", "80", "admin", "secret", client=client)


class TestParseEventLine:
    def test_simple_event(self):
        assert parse_event_line("Code=VideoMotion;action=Start;index=0") == AlarmEvent(
            code="VideoMotion", action="Start", index=0
        )

    def test_event_with_data_block(self):
        event = parse_event_line('Code=CrossLineDetection;action=Pulse;index=2;data={"a";1}')
        assert event == AlarmEvent(code="CrossLineDetection", action="Pulse", index=2)

    def test_surrounding_whitespace_ignored(self):
        assert parse_event_line("  Code=AlarmLocal;action=Stop;index=3\r\n").index == 3

    def test_non_event_lines(self):
        assert parse_event_line("Heartbeat") is None
        assert parse_event_line("--myboundary") is None
        assert parse_event_line("Content-Type: text/plain") is None
        assert parse_event_line("") is None

    def test_malformed_event_lines(self):
        assert parse_event_line("Code=VideoMotion;action=Start") is None
        assert parse_event_line("Code=VideoMotion;action=Start;index=first") is None


class TestDahuaCameraInitialization:
    def test_construction_does_no_io(self):
        def handler(request):
            raise AssertionError("no request expected")

        camera = make_camera(handler)
        assert camera.host == "10.0.0.5"
        assert camera.port == "80"

    def test_default_port(self):
        camera = DahuaCamera("10.0.0.5", None, "admin", "secret")
        assert camera.port == "80"
        assert camera.base_url == "http://10.0.0.5:80"


class TestDahuaCameraName:
    @pytest.mark.asyncio
    async def test_get_name(self):
        def handler(request):
            assert request.url.path == "/cgi-bin/magicBox.cgi"
            assert request.url.params["action"] == "getMachineName"
            return httpx.Response(200, text="name=  Garage \r\n")

        camera = make_camera(handler)
        assert await camera.get_name() == "  Garage "
        await camera.aclose()

    @pytest.mark.asyncio
    async def test_get_name_error_status(self):
        camera = make_camera(lambda request: httpx.Response(401, text="Unauthorized"))
        with pytest.raises(CameraError, match="401"):
            await camera.get_name()
        await camera.aclose()

    @pytest.mark.asyncio
    async def test_get_name_unexpected_body(self):
        camera = make_camera(lambda request: httpx.Response(200, text="Error\r\n"))
        with pytest.raises(CameraError, match="Unexpected name reply"):
            await camera.get_name()
        await camera.aclose()

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        camera = make_camera(handler)
        with pytest.raises(httpx.ConnectError):
            await camera.get_name()
        await camera.aclose()


class TestDahuaCameraEvents:
    @pytest.mark.asyncio
    async def test_events_decoded_in_order(self):
        def handler(request):
            assert request.url.path == "/cgi-bin/eventManager.cgi"
            assert request.url.params["action"] == "attach"
            assert request.url.params["codes"] == "[All]"
            return httpx.Response(
                200,
                content=EVENT_STREAM,
                headers={"Content-Type": "multipart/x-mixed-replace; boundary=myboundary"},
            )

        camera = make_camera(handler)
        events = [event async for event in camera.events()]
        await camera.aclose()

        assert events == [
            AlarmEvent(code="VideoMotion", action="Start", index=0),
            AlarmEvent(code="CrossLineDetection", action="Start", index=1),
            AlarmEvent(code="VideoMotion", action="Stop", index=0),
        ]

    @pytest.mark.asyncio
    async def test_attach_refused(self):
        camera = make_camera(lambda request: httpx.Response(403, text="Forbidden"))
        with pytest.raises(CameraError, match="403"):
            async for _ in camera.events():
                pass
        await camera.aclose()

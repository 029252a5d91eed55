from __future__ import annotations

import base64
from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from conftest import TransportRecorder, fake_png, make_ready

from wagate.api import create_app
from wagate.session import Session


@pytest_asyncio.fixture
async def client(session: Session) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(session, manage_session=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as c:
        yield c


@pytest.mark.asyncio
async def test_index_lists_endpoints(client: httpx.AsyncClient) -> None:
    res = await client.get("/")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "running"
    assert "GET /api/qr" in body["endpoints"]["auth"]


@pytest.mark.asyncio
async def test_unknown_route(client: httpx.AsyncClient) -> None:
    res = await client.get("/api/nope")
    assert res.status_code == 404
    assert res.json() == {"success": False, "error": "Route not found"}


@pytest.mark.asyncio
async def test_qr_returns_png(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    await session.initialize()
    await transports.current.emit_qr("XYZ")
    await session.settle()

    res = await client.get("/api/qr")

    assert res.status_code == 200
    assert res.headers["content-type"] == "image/png"
    assert res.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert res.content == fake_png("XYZ")


@pytest.mark.asyncio
async def test_qr_not_available(client: httpx.AsyncClient, session: Session) -> None:
    await session.initialize()

    res = await client.get("/api/qr")

    assert res.status_code == 404
    body = res.json()
    assert body["success"] is False
    assert body["code"] == "NOT_AVAILABLE"


@pytest.mark.asyncio
async def test_qr_when_authenticated(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    await make_ready(session, transports)

    res = await client.get("/api/qr")

    assert res.status_code == 400
    assert res.json()["code"] == "ALREADY_AUTHENTICATED"


@pytest.mark.asyncio
async def test_status(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    res = await client.get("/api/status")
    assert res.status_code == 200
    assert res.json() == {"state": "UNPAIRED", "session": "UNINITIALIZED", "connected": False}

    await make_ready(session, transports)
    res = await client.get("/api/status")
    body = res.json()
    assert body["state"] == "CONNECTED"
    assert body["connected"] is True
    assert body["info"]["wid"]["user"] == "5511999999999"


@pytest.mark.asyncio
async def test_status_transport_failure(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    await session.initialize()
    transports.current.state_error = RuntimeError("page detached")

    res = await client.get("/api/status")

    assert res.status_code == 500
    body = res.json()
    assert body["code"] == "TRANSPORT_ERROR"
    assert body["details"] == "page detached"


@pytest.mark.asyncio
async def test_logout_not_authenticated(client: httpx.AsyncClient) -> None:
    res = await client.post("/api/logout")
    assert res.status_code == 400
    assert res.json()["code"] == "NOT_AUTHENTICATED"


@pytest.mark.asyncio
async def test_logout(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    transport = await make_ready(session, transports)

    res = await client.post("/api/logout")

    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Logged out successfully"}
    assert transport.logged_out
    assert not session.is_ready()


@pytest.mark.asyncio
async def test_logout_transport_failure(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    transport = await make_ready(session, transports)
    transport.logout_error = RuntimeError("page crashed")

    res = await client.post("/api/logout")

    assert res.status_code == 500
    assert res.json() == {
        "success": False,
        "code": "TRANSPORT_ERROR",
        "error": "Failed to logout",
        "details": "page crashed",
    }
    assert transport.destroyed
    assert not session.is_ready()


@pytest.mark.asyncio
async def test_send_message_not_ready_checked_before_body(client: httpx.AsyncClient) -> None:
    res = await client.post("/api/send-message", json={})
    assert res.status_code == 400
    assert res.json()["code"] == "NOT_READY"


@pytest.mark.asyncio
async def test_send_message(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    transport = await make_ready(session, transports)

    res = await client.post(
        "/api/send-message",
        json={"phone": "+55 11 99999-9999", "isGroup": False, "message": "hello"},
    )

    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "message": "Message sent successfully",
        "data": {
            "messageId": "true_5511999999999@c.us_MSG1",
            "to": "+55 11 99999-9999",
            "isGroup": False,
        },
    }
    assert transport.sent == [("5511999999999@c.us", "hello", None)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"isGroup": False, "message": "hello"},
        {"phone": "", "isGroup": False, "message": "hello"},
        {"phone": "123", "isGroup": "yes", "message": "hello"},
        {"phone": "123", "isGroup": False},
    ],
)
async def test_send_message_validation(
    client: httpx.AsyncClient,
    session: Session,
    transports: TransportRecorder,
    body: dict[str, object],
) -> None:
    transport = await make_ready(session, transports)

    res = await client.post("/api/send-message", json=body)

    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"
    assert transport.sent == []


@pytest.mark.asyncio
async def test_send_message_transport_error(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    transport = await make_ready(session, transports)
    transport.send_error = RuntimeError("recipient not on WhatsApp")

    res = await client.post(
        "/api/send-message", json={"phone": "123", "isGroup": False, "message": "hi"}
    )

    assert res.status_code == 500
    body = res.json()
    assert body == {
        "success": False,
        "code": "TRANSPORT_ERROR",
        "error": "Failed to send message",
        "details": "recipient not on WhatsApp",
    }


@pytest.mark.asyncio
async def test_send_file(
    client: httpx.AsyncClient, session: Session, transports: TransportRecorder
) -> None:
    transport = await make_ready(session, transports)
    payload = "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()

    res = await client.post(
        "/api/send-file",
        json={
            "phone": "120363025246125486",
            "isGroup": True,
            "filename": "chart.png",
            "caption": "weekly",
            "base64": payload,
        },
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["filename"] == "chart.png"
    assert data["isGroup"] is True
    chat_id, media, caption = transport.sent[0]
    assert chat_id == "120363025246125486@g.us"
    assert media.mimetype == "image/png"
    assert media.data == b"\x89PNG"
    assert caption == "weekly"


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["***", "", 12345])
async def test_send_file_rejects_malformed_base64(
    client: httpx.AsyncClient,
    session: Session,
    transports: TransportRecorder,
    content: object,
) -> None:
    transport = await make_ready(session, transports)

    res = await client.post(
        "/api/send-file",
        json={"phone": "123", "isGroup": False, "filename": "a.pdf", "base64": content},
    )

    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert "base64" in body["error"]
    assert transport.sent == []

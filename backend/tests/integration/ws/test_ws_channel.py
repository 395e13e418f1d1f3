"""Danmaku websocket channel tests driven through fake sockets."""

from __future__ import annotations

import asyncio
from collections import deque
import json
from pathlib import Path
from typing import Any

import pytest

import danmaku_relay.runtime as runtime
from danmaku_relay.relay.hub import Session
from danmaku_relay.ws.broadcast import pump_outbox
from danmaku_relay.ws.heartbeat import HeartbeatConfig
from danmaku_relay.ws.heartbeat import HeartbeatState
from danmaku_relay.ws.heartbeat import heartbeat_loop
from danmaku_relay.ws.heartbeat import ws_message_loop
from danmaku_relay.ws.routers import ws_danmaku

ADMIN_PASSWORD = "relay-admin-secret"


class _FakeWebSocket:
    def __init__(self, *, fail_sends: bool = False, fail_close: bool = False) -> None:
        self.accept_count = 0
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.sent_messages: list[tuple[str, Any]] = []
        self.fail_sends = fail_sends
        self.fail_close = fail_close

        self._accepted_event = asyncio.Event()
        self._disconnect_event = asyncio.Event()
        self._inbound_event = asyncio.Event()
        self._inbound_frames: deque[dict[str, Any]] = deque()

    async def accept(self) -> None:
        self.accept_count += 1
        self._accepted_event.set()

    async def close(self, *, code: int = 1000, reason: str | None = None) -> None:
        if self.fail_close:
            raise RuntimeError("already closed")
        self.close_code = code
        self.close_reason = reason

    async def send_json(self, payload: Any) -> None:
        if self.fail_sends:
            raise RuntimeError("socket gone")
        self.sent_messages.append(("json", payload))

    async def receive(self) -> dict[str, Any]:
        while True:
            if self._inbound_frames:
                return self._inbound_frames.popleft()
            if self._disconnect_event.is_set():
                return {"type": "websocket.disconnect", "code": 1000}
            self._inbound_event.clear()
            await self._inbound_event.wait()

    async def wait_accepted(self) -> None:
        await asyncio.wait_for(self._accepted_event.wait(), timeout=1.0)

    def push_event(self, event_type: str, payload: dict[str, Any]) -> None:
        self.push_text(json.dumps({"type": event_type, "payload": payload}))

    def push_text(self, text: str) -> None:
        self._inbound_frames.append({"type": "websocket.receive", "text": text})
        self._inbound_event.set()

    def push_bytes(self, data: bytes) -> None:
        self._inbound_frames.append({"type": "websocket.receive", "bytes": data})
        self._inbound_event.set()

    def disconnect(self) -> None:
        self._disconnect_event.set()
        self._inbound_event.set()

    def events(self, event_type: str) -> list[dict[str, Any]]:
        return [
            payload["payload"]
            for mode, payload in self.sent_messages
            if mode == "json" and payload.get("type") == event_type
        ]

    async def wait_for(self, event_type: str, count: int = 1) -> list[dict[str, Any]]:
        async def _poll() -> list[dict[str, Any]]:
            while len(self.events(event_type)) < count:
                await asyncio.sleep(0.005)
            return self.events(event_type)

        return await asyncio.wait_for(_poll(), timeout=1.0)


async def _settle() -> None:
    for _ in range(20):
        await asyncio.sleep(0)


@pytest.fixture
def relay_runtime(relay_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DANMAKU_HEARTBEAT_INTERVAL_SECONDS", "30")
    monkeypatch.setenv("DANMAKU_HEARTBEAT_TIMEOUT_SECONDS", "10")
    runtime.startup()


def test_connect_pushes_state_snapshot(relay_runtime: None) -> None:
    """Contract: /ws sends the full state snapshot right after connect."""

    async def _run() -> None:
        websocket = _FakeWebSocket()
        task = asyncio.create_task(ws_danmaku(websocket))
        await websocket.wait_accepted()

        states = await websocket.wait_for("state")

        websocket.disconnect()
        await asyncio.wait_for(task, timeout=1.0)
        assert states[0] == runtime.get_core().snapshot()
        assert states[0]["settings"]["lanes"] == 10
        assert len(runtime.get_core().hub) == 0

    asyncio.run(_run())


def test_two_sessions_end_to_end(relay_runtime: None) -> None:
    """Contract: login reply is private, ban is broadcast, banned text never reaches the peer."""

    async def _run() -> None:
        socket_a = _FakeWebSocket()
        socket_b = _FakeWebSocket()
        task_a = asyncio.create_task(ws_danmaku(socket_a))
        task_b = asyncio.create_task(ws_danmaku(socket_b))
        await socket_a.wait_accepted()
        await socket_b.wait_accepted()

        socket_a.push_event("adminLogin", {"password": ADMIN_PASSWORD})
        assert await socket_a.wait_for("adminLoginResult") == [{"ok": True}]

        socket_a.push_event("adminAddBannedWord", {"word": "spam"})
        a_states = await socket_a.wait_for("state", count=2)
        b_states = await socket_b.wait_for("state", count=2)
        assert a_states[-1]["bannedWords"] == ["spam"]
        assert b_states[-1]["bannedWords"] == ["spam"]

        socket_b.push_event("sendDanmaku", {"text": "no spam here"})
        alerts = await socket_b.wait_for("bannedAlert")

        socket_b.push_event("sendDanmaku", {"text": "hello", "color": "#00ffcc"})
        received = await socket_a.wait_for("danmaku")
        echoed = await socket_b.wait_for("danmaku")

        socket_a.disconnect()
        socket_b.disconnect()
        await asyncio.wait_for(asyncio.gather(task_a, task_b), timeout=1.0)

        assert alerts == [{"ok": False, "error": "message contains a banned word"}]
        assert socket_b.events("adminLoginResult") == []
        assert received == [{"text": "hello", "color": "#00ffcc", "lane": 0}]
        assert echoed == received

    asyncio.run(_run())


def test_malformed_frames_keep_connection_open(relay_runtime: None) -> None:
    async def _run() -> None:
        websocket = _FakeWebSocket()
        task = asyncio.create_task(ws_danmaku(websocket))
        await websocket.wait_accepted()

        websocket.push_text("{broken")
        websocket.push_text('{"type": "adminUpdateSettings", "payload": {"lanes": 4}}')
        websocket.push_event("sendDanmaku", {"text": "still alive"})
        received = await websocket.wait_for("danmaku")

        websocket.disconnect()
        await asyncio.wait_for(task, timeout=1.0)
        assert received == [{"text": "still alive", "color": "#ffffff", "lane": 0}]
        assert len(websocket.events("state")) == 1

    asyncio.run(_run())


def test_client_ping_gets_pong(relay_runtime: None) -> None:
    async def _run() -> None:
        websocket = _FakeWebSocket()
        task = asyncio.create_task(ws_danmaku(websocket))
        await websocket.wait_accepted()

        websocket.push_text("PING")
        pongs = await websocket.wait_for("PONG")

        websocket.disconnect()
        await asyncio.wait_for(task, timeout=1.0)
        assert pongs == [{}]
        assert websocket.events("PING"), "server heartbeat should ping on connect"

    asyncio.run(_run())


def test_failed_sender_does_not_block_other_sessions(relay_runtime: None) -> None:
    async def _run() -> None:
        broken = _FakeWebSocket(fail_sends=True)
        healthy = _FakeWebSocket()
        broken_task = asyncio.create_task(ws_danmaku(broken))
        healthy_task = asyncio.create_task(ws_danmaku(healthy))
        await broken.wait_accepted()
        await healthy.wait_accepted()
        await _settle()

        healthy.push_event("sendDanmaku", {"text": "one"})
        healthy.push_event("sendDanmaku", {"text": "two"})
        received = await healthy.wait_for("danmaku", count=2)

        broken.disconnect()
        healthy.disconnect()
        await asyncio.wait_for(asyncio.gather(broken_task, healthy_task), timeout=1.0)
        assert [event["text"] for event in received] == ["one", "two"]

    asyncio.run(_run())


def test_heartbeat_closes_after_missed_pongs() -> None:
    """Input: no PONG within the timeout -> Output: close 4408 HEARTBEAT_TIMEOUT."""

    async def _run() -> tuple[_FakeWebSocket, Session]:
        websocket = _FakeWebSocket()
        session = Session("quiet")
        await asyncio.wait_for(
            heartbeat_loop(
                websocket,
                session=session,
                heartbeat_state=HeartbeatState(),
                config=HeartbeatConfig(interval_seconds=0.05, pong_timeout_seconds=0.01, max_missed_pongs=2),
            ),
            timeout=1.0,
        )
        return websocket, session

    websocket, session = asyncio.run(_run())

    assert websocket.close_code == 4408
    assert websocket.close_reason == "HEARTBEAT_TIMEOUT"
    assert [message["type"] for message in session.pending()] == ["PING", "PING"]


def test_heartbeat_state_resets_missed_count_on_pong() -> None:
    async def _run() -> HeartbeatState:
        state = HeartbeatState()
        state.mark_ping_sent()
        assert await state.wait_for_pong(timeout_seconds=0.01) is False
        state.mark_ping_sent()
        state.mark_pong_received()
        assert await state.wait_for_pong(timeout_seconds=0.01) is True
        return state

    state = asyncio.run(_run())

    assert state.missed_pong_count == 0
    assert state.last_pong_at is not None


def test_binary_frames_are_dropped_without_closing(relay_runtime: None) -> None:
    async def _run() -> None:
        websocket = _FakeWebSocket()
        task = asyncio.create_task(ws_danmaku(websocket))
        await websocket.wait_accepted()

        websocket.push_bytes(b"\x00\x01")
        websocket.push_event("sendDanmaku", {"text": "after bytes"})
        received = await websocket.wait_for("danmaku")

        websocket.disconnect()
        await asyncio.wait_for(task, timeout=1.0)
        assert received == [{"text": "after bytes", "color": "#ffffff", "lane": 0}]
        assert websocket.close_code is None

    asyncio.run(_run())


def test_heartbeat_timeout_tolerates_close_failure() -> None:
    async def _run() -> _FakeWebSocket:
        websocket = _FakeWebSocket(fail_close=True)
        await asyncio.wait_for(
            heartbeat_loop(
                websocket,
                session=Session("gone"),
                heartbeat_state=HeartbeatState(),
                config=HeartbeatConfig(interval_seconds=0.02, pong_timeout_seconds=0.01, max_missed_pongs=1),
            ),
            timeout=1.0,
        )
        return websocket

    websocket = asyncio.run(_run())

    assert websocket.close_code is None


def test_message_loop_cancels_writer_when_close_fails(relay_runtime: None) -> None:
    """A failed heartbeat close must not leave the outbox writer running."""

    async def _run() -> set[asyncio.Task[Any]]:
        websocket = _FakeWebSocket(fail_close=True)
        loop_task = asyncio.create_task(
            ws_message_loop(
                websocket,
                session=Session("stale"),
                core=runtime.get_core(),
                heartbeat=HeartbeatConfig(interval_seconds=0.02, pong_timeout_seconds=0.01, max_missed_pongs=1),
            )
        )
        await websocket.wait_for("PING")
        await asyncio.sleep(0.05)

        websocket.disconnect()
        await asyncio.wait_for(loop_task, timeout=1.0)
        await _settle()
        return asyncio.all_tasks() - {asyncio.current_task()}

    leftover = asyncio.run(_run())

    assert leftover == set()


class _SilentSocket:
    """Transport with no send methods at all."""


def test_pump_outbox_closes_session_on_unsendable_socket() -> None:
    async def _run() -> Session:
        session = Session("mute")
        session.deliver({"v": 1, "type": "PING", "payload": {}})
        await asyncio.wait_for(pump_outbox(session, _SilentSocket()), timeout=1.0)
        return session

    session = asyncio.run(_run())

    assert session.closed is True

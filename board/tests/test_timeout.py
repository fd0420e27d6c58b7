import asyncio
import time
import unittest

from fastapi.testclient import TestClient

from board.app import create_app
from board.config import Settings
from board.store import ResilientStore
from board.timeout import TIMEOUT_STATUS_CODE, TimeoutGuard


def _scope(path="/"):
    return {"type": "http", "method": "GET", "path": path, "headers": []}


async def _receive():
    return {"type": "http.request", "body": b"", "more_body": False}


async def _respond(send, body=b"ok"):
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": body})


class Recorder:
    def __init__(self):
        self.messages = []

    async def __call__(self, message):
        self.messages.append(message)

    @property
    def statuses(self):
        return [
            m["status"] for m in self.messages if m["type"] == "http.response.start"
        ]


class TimeoutGuardTests(unittest.IsolatedAsyncioTestCase):
    async def test_hanging_app_gets_single_timeout_response(self):
        cancelled = asyncio.Event()

        async def hanging_app(scope, receive, send):
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        guard = TimeoutGuard(hanging_app, timeout=0.05)
        sent = Recorder()
        started = time.monotonic()
        await guard(_scope("/slow"), _receive, sent)
        elapsed = time.monotonic() - started

        self.assertLess(elapsed, 1.0)
        self.assertEqual(sent.statuses, [TIMEOUT_STATUS_CODE])
        await asyncio.wait_for(cancelled.wait(), timeout=1)

    async def test_fast_app_is_not_followed_by_timeout(self):
        async def fast_app(scope, receive, send):
            await _respond(send)

        guard = TimeoutGuard(fast_app, timeout=0.05)
        sent = Recorder()
        await guard(_scope(), _receive, sent)
        await asyncio.sleep(0.1)
        self.assertEqual(sent.statuses, [200])
        self.assertEqual(len(sent.messages), 2)

    async def test_started_response_is_allowed_to_finish(self):
        async def slow_body_app(scope, receive, send):
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await asyncio.sleep(0.1)
            await send({"type": "http.response.body", "body": b"late"})

        guard = TimeoutGuard(slow_body_app, timeout=0.05)
        sent = Recorder()
        await guard(_scope(), _receive, sent)
        self.assertEqual(sent.statuses, [200])
        self.assertEqual(sent.messages[-1]["body"], b"late")

    async def test_app_errors_propagate(self):
        async def broken_app(scope, receive, send):
            raise RuntimeError("boom")

        guard = TimeoutGuard(broken_app, timeout=1)
        with self.assertRaises(RuntimeError):
            await guard(_scope(), _receive, Recorder())

    async def test_non_http_scope_passes_through(self):
        seen = []

        async def lifespan_app(scope, receive, send):
            await asyncio.sleep(0.1)
            seen.append(scope["type"])

        guard = TimeoutGuard(lifespan_app, timeout=0.01)
        await guard({"type": "lifespan"}, _receive, Recorder())
        self.assertEqual(seen, ["lifespan"])

    async def test_disabled_guard_waits_for_app(self):
        async def slow_app(scope, receive, send):
            await asyncio.sleep(0.05)
            await _respond(send)

        guard = TimeoutGuard(slow_app, timeout=0)
        sent = Recorder()
        await guard(_scope(), _receive, sent)
        self.assertEqual(sent.statuses, [200])


class HangingRemote:
    async def get(self, key):
        await asyncio.Event().wait()

    async def set(self, key, value):
        await asyncio.Event().wait()

    async def delete(self, key):
        await asyncio.Event().wait()


class TimeoutThroughAppTests(unittest.TestCase):
    def test_request_with_hanging_remote_times_out(self):
        # No per-call bound, so only the request deadline can end the request.
        store = ResilientStore(remote=HangingRemote(), remote_timeout=None)
        settings = Settings(request_timeout_seconds=0.2)
        client = TestClient(create_app(settings=settings, store=store))

        started = time.monotonic()
        response = client.get("/api/posts")
        elapsed = time.monotonic() - started

        self.assertEqual(response.status_code, 504)
        self.assertEqual(response.json(), {"detail": "Gateway Timeout"})
        self.assertLess(elapsed, 2.0)

    def test_remote_timeout_degrades_before_request_deadline(self):
        store = ResilientStore(remote=HangingRemote(), remote_timeout=0.05)
        settings = Settings(request_timeout_seconds=2)
        client = TestClient(create_app(settings=settings, store=store))

        response = client.get("/api/posts")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])
        self.assertEqual(response.headers["X-Data-Source"], "fallback")


if __name__ == "__main__":
    unittest.main()

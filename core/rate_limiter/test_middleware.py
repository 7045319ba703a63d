from unittest.async_case import IsolatedAsyncioTestCase
from unittest.mock import Mock
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from core.rate_limiter.middleware import RateLimitMiddleware


def make_request(path="/tickets/", client_host="192.168.1.1"):
    request = Mock(spec=Request)
    request.url = Mock()
    request.url.path = path
    request.client = Mock()
    request.client.host = client_host
    request.headers = {"User-Agent": "TestAgent"}
    return request


async def call_next(request):
    return JSONResponse({"status": "ok"})


class TestRateLimitMiddleware(IsolatedAsyncioTestCase):
    def make_middleware(self, **kwargs):
        options = {"enabled": True, "limit": 3, "window": 60, "use_fingerprint": False}
        options.update(kwargs)
        return RateLimitMiddleware(app=FastAPI(), **options)

    async def test_headers_on_allowed_request(self):
        middleware = self.make_middleware()
        response = await middleware.dispatch(make_request(), call_next)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-RateLimit-Limit"], "3")
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "2")
        self.assertEqual(response.headers["X-RateLimit-Window"], "60")

    async def test_returns_429_when_exceeded(self):
        middleware = self.make_middleware()
        request = make_request()
        for _ in range(3):
            response = await middleware.dispatch(request, call_next)
            self.assertEqual(response.status_code, 200)

        response = await middleware.dispatch(request, call_next)
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "0")
        self.assertIn("Retry-After", response.headers)

    async def test_disabled_middleware_passes_everything(self):
        middleware = self.make_middleware(enabled=False, limit=1)
        request = make_request()
        for _ in range(5):
            response = await middleware.dispatch(request, call_next)
            self.assertEqual(response.status_code, 200)
            self.assertNotIn("X-RateLimit-Limit", response.headers)

    async def test_excluded_paths_are_not_counted(self):
        middleware = self.make_middleware(limit=1, exclude_paths=["/health"])
        request = make_request(path="/health")
        for _ in range(3):
            response = await middleware.dispatch(request, call_next)
            self.assertEqual(response.status_code, 200)

    async def test_clients_have_separate_budgets(self):
        middleware = self.make_middleware(limit=1)
        await middleware.dispatch(make_request(client_host="1.1.1.1"), call_next)
        blocked = await middleware.dispatch(make_request(client_host="1.1.1.1"), call_next)
        other = await middleware.dispatch(make_request(client_host="2.2.2.2"), call_next)

        self.assertEqual(blocked.status_code, 429)
        self.assertEqual(other.status_code, 200)

    async def test_custom_key_func(self):
        middleware = self.make_middleware(limit=1, key_func=lambda request: "shared")
        await middleware.dispatch(make_request(client_host="1.1.1.1"), call_next)
        response = await middleware.dispatch(make_request(client_host="2.2.2.2"), call_next)
        self.assertEqual(response.status_code, 429)


class TestRateLimitMiddlewareInApp(IsolatedAsyncioTestCase):
    def test_app_returns_429_body(self):
        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, enabled=True, limit=2, window=60)

        @app.get("/ping")
        def ping():
            return {"pong": True}

        client = TestClient(app)
        self.assertEqual(client.get("/ping").status_code, 200)
        self.assertEqual(client.get("/ping").status_code, 200)
        response = client.get("/ping")
        self.assertEqual(response.status_code, 429)
        self.assertEqual(
            response.json()["message"], "Too many requests, please try again later."
        )

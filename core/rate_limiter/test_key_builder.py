from datetime import datetime, timedelta, timezone
from unittest import TestCase
from unittest.mock import Mock

import jwt
from fastapi import Request

from core.rate_limiter.key_builder import RateLimitKeyBuilder
from settings import ALGORITHM, SECRET_KEY


def make_request(headers=None, client_host="10.0.0.1"):
    request = Mock(spec=Request)
    request.headers = headers or {}
    if client_host is None:
        request.client = None
    else:
        request.client = Mock()
        request.client.host = client_host
    return request


class TestRateLimitKeyBuilder(TestCase):
    def test_client_ip_prefers_tcp_peer(self):
        request = make_request(headers={"X-Forwarded-For": "1.2.3.4"})
        self.assertEqual(RateLimitKeyBuilder.get_client_ip(request), "10.0.0.1")

    def test_client_ip_falls_back_to_proxy_headers(self):
        request = make_request(
            headers={"X-Forwarded-For": "1.2.3.4, 5.6.7.8"}, client_host=None
        )
        self.assertEqual(RateLimitKeyBuilder.get_client_ip(request), "1.2.3.4")

        request = make_request(headers={"X-Real-IP": " 9.9.9.9 "}, client_host=None)
        self.assertEqual(RateLimitKeyBuilder.get_client_ip(request), "9.9.9.9")

        request = make_request(client_host=None)
        self.assertEqual(RateLimitKeyBuilder.get_client_ip(request), "unknown")

    def test_fingerprint_changes_with_user_agent(self):
        chrome = make_request(headers={"User-Agent": "Chrome"})
        firefox = make_request(headers={"User-Agent": "Firefox"})
        self.assertNotEqual(
            RateLimitKeyBuilder.get_fingerprint(chrome),
            RateLimitKeyBuilder.get_fingerprint(firefox),
        )
        self.assertEqual(len(RateLimitKeyBuilder.get_fingerprint(chrome)), 12)

    def test_signed_in_user_key(self):
        token = jwt.encode(
            {
                "id": "5f0c6a8e-0000-4000-8000-000000000001",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            SECRET_KEY,
            algorithm=ALGORITHM,
        )
        request = make_request(headers={"authorization": f"Bearer {token}"})
        self.assertEqual(
            RateLimitKeyBuilder.build_key(request),
            "user:5f0c6a8e-0000-4000-8000-000000000001",
        )

    def test_invalid_token_is_treated_as_anonymous(self):
        request = make_request(headers={"authorization": "Bearer not-a-jwt"})
        self.assertEqual(
            RateLimitKeyBuilder.build_key(request, use_fingerprint=False),
            "anon:10.0.0.1",
        )

    def test_anonymous_key_with_fingerprint(self):
        request = make_request(headers={"User-Agent": "Chrome"})
        key = RateLimitKeyBuilder.build_key(request)
        self.assertTrue(key.startswith("anon:10.0.0.1:"))
        self.assertEqual(key, f"anon:10.0.0.1:{RateLimitKeyBuilder.get_fingerprint(request)}")

import hashlib
from typing import Optional
from fastapi import Request
import jwt

from settings import ALGORITHM, SECRET_KEY


class RateLimitKeyBuilder:
    @staticmethod
    def get_client_ip(request: Request) -> str:
        """TCP peer address first, proxy headers only when it is missing."""
        if request.client and request.client.host:
            return request.client.host

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        return "unknown"

    @staticmethod
    def get_fingerprint(request: Request) -> str:
        factors = [
            RateLimitKeyBuilder.get_client_ip(request),
            request.headers.get("User-Agent", ""),
            request.headers.get("Accept-Language", ""),
        ]
        return hashlib.sha256("|".join(factors).encode()).hexdigest()[:12]

    @staticmethod
    def get_user_id(request: Request) -> Optional[str]:
        """User id from a valid bearer token, None for anonymous callers."""
        authorization = request.headers.get("authorization") or ""
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        try:
            payload = jwt.decode(
                jwt=token.strip(), key=SECRET_KEY, algorithms=[ALGORITHM]
            )
        except jwt.PyJWTError:
            return None
        return payload.get("id")

    @staticmethod
    def build_key(request: Request, use_fingerprint: bool = True) -> str:
        """
        Examples:
            signed in: "user:5f0c..."
            anonymous with fingerprint: "anon:10.0.0.1:a1b2c3d4e5f6"
            anonymous without fingerprint: "anon:10.0.0.1"
        """
        user_id = RateLimitKeyBuilder.get_user_id(request)
        if user_id:
            return f"user:{user_id}"

        ip = RateLimitKeyBuilder.get_client_ip(request)
        if use_fingerprint:
            return f"anon:{ip}:{RateLimitKeyBuilder.get_fingerprint(request)}"
        return f"anon:{ip}"

from unittest.async_case import IsolatedAsyncioTestCase
from core.rate_limiter.memory import InMemoryRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestInMemoryRateLimiter(IsolatedAsyncioTestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.limiter = InMemoryRateLimiter(clock=self.clock)

    async def test_blocks_after_limit(self):
        for i in range(5):
            result = await self.limiter.hit("user:1", limit=5, window=60)
            self.assertTrue(result.allowed, f"Request {i + 1} should be allowed")
            self.assertEqual(result.remaining, 5 - (i + 1))
            self.assertIsNone(result.retry_after)

        result = await self.limiter.hit("user:1", limit=5, window=60)
        self.assertFalse(result.allowed)
        self.assertEqual(result.remaining, 0)
        self.assertEqual(result.retry_after, 60)

    async def test_window_slides(self):
        for _ in range(3):
            await self.limiter.hit("anon:1.1.1.1", limit=3, window=10)

        self.clock.now += 4
        result = await self.limiter.hit("anon:1.1.1.1", limit=3, window=10)
        self.assertFalse(result.allowed)
        self.assertEqual(result.retry_after, 6)

        self.clock.now += 6
        result = await self.limiter.hit("anon:1.1.1.1", limit=3, window=10)
        self.assertTrue(result.allowed)

    async def test_keys_are_independent(self):
        await self.limiter.hit("user:1", limit=1, window=60)
        blocked = await self.limiter.hit("user:1", limit=1, window=60)
        other = await self.limiter.hit("user:2", limit=1, window=60)

        self.assertFalse(blocked.allowed)
        self.assertTrue(other.allowed)

    async def test_reset(self):
        await self.limiter.hit("user:1", limit=1, window=60)
        await self.limiter.reset("user:1")
        result = await self.limiter.hit("user:1", limit=1, window=60)
        self.assertTrue(result.allowed)

    async def test_cleanup_expired_drops_idle_keys(self):
        await self.limiter.hit("user:1", limit=5, window=60)
        self.clock.now += 30
        await self.limiter.hit("user:2", limit=5, window=60)

        self.clock.now += 45
        await self.limiter.cleanup_expired(window=60)

        self.assertNotIn("user:1", self.limiter._hits)
        self.assertIn("user:2", self.limiter._hits)

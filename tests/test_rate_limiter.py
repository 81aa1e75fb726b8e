from types import SimpleNamespace

from famli.core.rate_limiter import RateLimiter, get_client_ip


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestRateLimiter:

    def setup_method(self):
        self.clock = FakeClock()
        self.limiter = RateLimiter(3, window_seconds=60, block_seconds=300, clock=self.clock)

    def test_allows_up_to_limit(self):
        results = [self.limiter.allow("1.1.1.1")[0] for _ in range(3)]
        assert results == [True, True, True]

    def test_blocks_after_limit(self):
        for _ in range(3):
            self.limiter.allow("1.1.1.1")

        allowed, retry_after = self.limiter.allow("1.1.1.1")
        assert not allowed
        assert retry_after == 300

    def test_block_outlasts_window(self):
        for _ in range(4):
            self.limiter.allow("1.1.1.1")

        self.clock.now += 120
        allowed, retry_after = self.limiter.allow("1.1.1.1")
        assert not allowed
        assert retry_after == 180

        self.clock.now += 180
        assert self.limiter.allow("1.1.1.1")[0]

    def test_window_resets(self):
        for _ in range(3):
            self.limiter.allow("1.1.1.1")

        self.clock.now += 60
        assert self.limiter.allow("1.1.1.1")[0]

    def test_clients_are_independent(self):
        for _ in range(4):
            self.limiter.allow("1.1.1.1")

        assert self.limiter.allow("2.2.2.2")[0]

    def test_reset(self):
        for _ in range(4):
            self.limiter.allow("1.1.1.1")

        self.limiter.reset("1.1.1.1")
        assert self.limiter.allow("1.1.1.1")[0]


class TestClientIp:

    def _request(self, headers=None, host="10.0.0.1"):
        return SimpleNamespace(headers=headers or {}, client=SimpleNamespace(host=host))

    def test_forwarded_for_first_entry(self):
        request = self._request({"x-forwarded-for": "203.0.113.5, 10.0.0.2"})
        assert get_client_ip(request) == "203.0.113.5"

    def test_real_ip(self):
        assert get_client_ip(self._request({"x-real-ip": " 203.0.113.9 "})) == "203.0.113.9"

    def test_connection_address(self):
        assert get_client_ip(self._request()) == "10.0.0.1"

    def test_no_client(self):
        request = SimpleNamespace(headers={}, client=None)
        assert get_client_ip(request) == "unknown"

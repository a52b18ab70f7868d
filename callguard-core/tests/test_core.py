"""
Unit Tests for callguard-core Library
=====================================
Tests for outcomes, registry, configuration, logging and composition.
"""

import asyncio
import logging

import pytest
import structlog


class TestOutcome:
    """Tests for tagged call outcomes."""

    @pytest.mark.asyncio
    async def test_success(self):
        """Should tag a returned value as SUCCESS."""
        from callguard_core.outcome import capture, OutcomeKind

        async def ok():
            return 5

        outcome = await capture(ok)

        assert outcome.kind is OutcomeKind.SUCCESS
        assert outcome.is_success
        assert outcome.unwrap() == 5

    @pytest.mark.asyncio
    async def test_operation_failure(self):
        """Should tag the operation's own error as FAILURE."""
        from callguard_core.outcome import capture, OutcomeKind

        async def boom():
            raise RuntimeError("boom")

        outcome = await capture(boom)

        assert outcome.kind is OutcomeKind.FAILURE
        with pytest.raises(RuntimeError):
            outcome.unwrap()

    @pytest.mark.asyncio
    async def test_short_circuit_is_rejected(self):
        """Should tag a circuit breaker rejection as REJECTED."""
        from callguard_core import CircuitBreaker, capture, OutcomeKind

        breaker = CircuitBreaker("cb")
        breaker.transition_to_open_state()
        invoked = False

        async def op():
            nonlocal invoked
            invoked = True

        outcome = await capture(breaker.decorate(op))

        assert outcome.kind is OutcomeKind.REJECTED
        assert invoked is False

    @pytest.mark.asyncio
    async def test_saturation_is_rejected(self):
        """Should tag a bulkhead rejection as REJECTED."""
        from callguard_core import Bulkhead, BulkheadConfig, capture, OutcomeKind

        bh = Bulkhead("bh", BulkheadConfig(max_concurrent_calls=1))
        assert bh.try_acquire_permission()

        async def op():
            return 1

        outcome = await capture(bh.decorate(op))

        assert outcome.kind is OutcomeKind.REJECTED

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Should tag a time limiter expiry as TIMEOUT."""
        from callguard_core import TimeLimiter, TimeLimiterConfig, capture, OutcomeKind

        limiter = TimeLimiter("tl", TimeLimiterConfig(timeout_duration=0.001))

        async def hang():
            await asyncio.sleep(10)

        outcome = await capture(limiter.decorate(hang))

        assert outcome.kind is OutcomeKind.TIMEOUT


class TestRegistry:
    """Tests for the named policy registry."""

    def test_get_or_create(self):
        """Should return the same instance for the same name."""
        from callguard_core import Registry

        registry = Registry()

        assert registry.circuit_breaker("identity") is registry.circuit_breaker("identity")
        assert registry.bulkhead("db") is registry.bulkhead("db")
        assert registry.retry("ledger") is registry.retry("ledger")
        assert registry.time_limiter("search") is registry.time_limiter("search")
        assert registry.circuit_breaker("identity") is not registry.circuit_breaker("sms")

    def test_default_and_override_config(self):
        """Registry default config applies unless a config is passed on creation."""
        from callguard_core import Registry, CircuitBreakerConfig

        registry = Registry(circuit_breaker_config=CircuitBreakerConfig(sliding_window_size=5))
        custom = CircuitBreakerConfig(sliding_window_size=9)

        assert registry.circuit_breaker("a").config.sliding_window_size == 5
        assert registry.circuit_breaker("b", custom).config.sliding_window_size == 9
        # Config ignored once the instance exists
        assert registry.circuit_breaker("a", custom).config.sliding_window_size == 5

    def test_registries_are_isolated(self):
        """Two registries never share instances."""
        from callguard_core import Registry

        assert Registry().circuit_breaker("x") is not Registry().circuit_breaker("x")

    def test_metrics_and_reset(self):
        """Should report metrics and reset breakers by name."""
        from callguard_core import Registry, CircuitState

        registry = Registry()
        breaker = registry.circuit_breaker("identity")
        registry.bulkhead("db")
        breaker.transition_to_open_state()

        metrics = registry.get_all_metrics()
        assert metrics["circuit_breakers"]["identity"]["state"] == "open"
        assert "db" in metrics["bulkheads"]

        registry.reset_breaker("identity")
        assert breaker.state == CircuitState.CLOSED

        breaker.transition_to_open_state()
        registry.reset_all_breakers()
        assert breaker.state == CircuitState.CLOSED

        registry.reset_breaker("unknown")


class TestConfigFromEnv:
    """Tests for environment-driven configuration."""

    def test_circuit_breaker_from_env(self, monkeypatch):
        """Should read scalar fields from prefixed variables."""
        from callguard_core import CircuitBreakerConfig

        monkeypatch.setenv("CALLGUARD_CIRCUIT_BREAKER_FAILURE_RATE_THRESHOLD", "20")
        monkeypatch.setenv("CALLGUARD_CIRCUIT_BREAKER_SLIDING_WINDOW_SIZE", "5")
        monkeypatch.setenv("CALLGUARD_CIRCUIT_BREAKER_MINIMUM_NUMBER_OF_CALLS", "none")

        config = CircuitBreakerConfig.from_env()

        assert config.failure_rate_threshold == 20.0
        assert config.sliding_window_size == 5
        assert config.minimum_number_of_calls is None
        assert config.permitted_calls_in_half_open_state == 10

    def test_time_limiter_bool_from_env(self, monkeypatch):
        """Should parse booleans."""
        from callguard_core import TimeLimiterConfig

        monkeypatch.setenv("SEARCH_TIMEOUT_DURATION", "2.5")
        monkeypatch.setenv("SEARCH_CANCEL_RUNNING_FUTURE", "false")

        config = TimeLimiterConfig.from_env(prefix="SEARCH_")

        assert config.timeout_duration == 2.5
        assert config.cancel_running_future is False

    def test_invalid_env_value_rejected(self, monkeypatch):
        """Out-of-range values from the environment are still validated."""
        from callguard_core import BulkheadConfig, InvalidConfigError

        monkeypatch.setenv("CALLGUARD_BULKHEAD_MAX_CONCURRENT_CALLS", "0")

        with pytest.raises(InvalidConfigError):
            BulkheadConfig.from_env()

    def test_retry_defaults_without_env(self, monkeypatch):
        """Unset variables keep the defaults."""
        from callguard_core import RetryConfig

        monkeypatch.delenv("CALLGUARD_RETRY_MAX_ATTEMPTS", raising=False)
        monkeypatch.delenv("CALLGUARD_RETRY_WAIT_DURATION", raising=False)

        assert RetryConfig.from_env() == RetryConfig()


class TestLogging:
    """Tests for logging setup and policy events."""

    def test_setup_logging_returns_logger(self):
        """Should configure structlog and return a logger."""
        from callguard_core.log import setup_logging

        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        try:
            logger = setup_logging("payments-api", level="debug", json_output=False)

            assert logger is not None
            assert structlog.is_configured()
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = handlers
            root.setLevel(level)
            structlog.contextvars.clear_contextvars()

    def test_circuit_opened_event(self):
        """Opening the circuit should emit a circuit_opened warning."""
        from callguard_core import CircuitBreaker, CircuitBreakerConfig

        breaker = CircuitBreaker("events", CircuitBreakerConfig(sliding_window_size=1))

        with structlog.testing.capture_logs() as logs:
            breaker.on_error(RuntimeError("down"))

        opened = [e for e in logs if e["event"] == "circuit_opened"]
        assert len(opened) == 1
        assert opened[0]["breaker"] == "events"
        assert opened[0]["log_level"] == "warning"


class TestComposition:
    """Tests for stacking policies around one operation."""

    @pytest.mark.asyncio
    async def test_retry_outside_breaker_records_each_attempt_once(self):
        """Each retried attempt is recorded exactly once by the breaker."""
        from callguard_core import (
            CircuitBreaker,
            CircuitBreakerConfig,
            Retry,
            RetryConfig,
        )

        breaker = CircuitBreaker("dep", CircuitBreakerConfig(sliding_window_size=10))
        retry = Retry("dep", RetryConfig(max_attempts=3, wait_duration=0))

        async def fail():
            raise ConnectionError("refused")

        guarded = retry.decorate(breaker.decorate(fail))

        with pytest.raises(ConnectionError):
            await guarded()

        assert breaker.metrics["failed_calls"] == 3

    @pytest.mark.asyncio
    async def test_time_limiter_bounds_retry_waits(self):
        """An enclosing timeout interrupts the retry's wait."""
        from callguard_core import (
            Retry,
            RetryConfig,
            TimeLimiter,
            TimeLimiterConfig,
            TimeLimitExceededError,
        )

        calls = 0

        async def fail():
            nonlocal calls
            calls += 1
            raise ConnectionError("refused")

        retry = Retry("dep", RetryConfig(max_attempts=5, wait_duration=10.0))
        limiter = TimeLimiter("dep", TimeLimiterConfig(timeout_duration=0.05))
        guarded = limiter.decorate(retry.decorate(fail))

        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(TimeLimitExceededError):
            await guarded()

        assert loop.time() - started < 1.0
        assert calls == 1

    @pytest.mark.asyncio
    async def test_full_stack(self):
        """All four policies stack around one call."""
        from callguard_core import (
            Bulkhead,
            CircuitBreaker,
            Retry,
            RetryConfig,
            TimeLimiter,
        )

        attempts = 0

        async def fetch(order_id):
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise ConnectionError("reset")
            return {"id": order_id}

        guarded = Bulkhead("orders").decorate(
            CircuitBreaker("orders").decorate(
                Retry("orders", RetryConfig(wait_duration=0)).decorate(
                    TimeLimiter("orders").decorate(fetch)
                )
            )
        )

        assert await guarded("o-1") == {"id": "o-1"}
        assert attempts == 2

    def test_plain_function_stack(self):
        """Bulkhead, breaker and retry stack around a synchronous call."""
        from callguard_core import (
            Bulkhead,
            CircuitBreaker,
            CircuitBreakerConfig,
            Retry,
            RetryConfig,
        )

        attempts = 0

        def fetch(order_id):
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise ConnectionError("reset")
            return {"id": order_id}

        breaker = CircuitBreaker("orders", CircuitBreakerConfig(sliding_window_size=10))
        guarded = Bulkhead("orders").decorate(
            Retry("orders", RetryConfig(wait_duration=0), sync_sleep=lambda _: None).decorate(
                breaker.decorate(fetch)
            )
        )

        assert guarded("o-1") == {"id": "o-1"}
        assert attempts == 2
        assert breaker.metrics["failed_calls"] == 1
        assert breaker.metrics["successful_calls"] == 1

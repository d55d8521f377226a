"""
Circuit Breaker configuration for external provider calls.

One breaker per provider (hotel, flight, Stripe) so that an outage in one
provider does not fail fast calls to the others.

Circuit Breaker Pattern:
- CLOSED: Normal operation, requests pass through
- OPEN: Too many failures, requests fail immediately
- HALF_OPEN: Testing if service recovered, limited requests allowed

An open circuit surfaces as ProviderError, so callers degrade through the
same failed-row plus manual fallback path as any other provider failure.
"""

import logging
from functools import wraps

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

from app.domain.errors import ProviderError

logger = logging.getLogger(__name__)


def log_circuit_state_change(breaker_name: str, old_state: str, new_state: str):
    """Log circuit breaker state changes for monitoring and alerting."""
    logger.warning(
        "Circuit breaker state changed",
        extra={
            "breaker_name": breaker_name,
            "old_state": old_state,
            "new_state": new_state,
        },
    )


class StateChangeListener(CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        log_circuit_state_change(
            self.name,
            old_state.name if old_state else "none",
            new_state.name,
        )


def _build_breaker(name: str, provider: str) -> CircuitBreaker:
    return CircuitBreaker(
        fail_max=5,  # Open circuit after 5 consecutive failures
        reset_timeout=60,  # Wait 60 seconds before attempting recovery
        name=name,
        listeners=[StateChangeListener(provider)],
    )


hotel_breaker = _build_breaker("hotel_provider_circuit_breaker", "hotel-provider")
flight_breaker = _build_breaker("flight_provider_circuit_breaker", "flight-provider")
stripe_breaker = _build_breaker("stripe_circuit_breaker", "stripe")

ALL_BREAKERS = (hotel_breaker, flight_breaker, stripe_breaker)


def async_provider_breaker(breaker: CircuitBreaker, provider: str):
    """
    Decorator for async provider calls with circuit breaker.

    pybreaker's call_async depends on tornado, so the coroutine is awaited
    inside `breaker.calling()`, which still counts failures and successes.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                with breaker.calling():
                    return await func(*args, **kwargs)
            except CircuitBreakerError as exc:
                logger.warning(
                    "Circuit breaker open, failing fast",
                    extra={"breaker_name": breaker.name, "provider": provider},
                )
                raise ProviderError(provider, f"{provider} temporarily unavailable (circuit open)") from exc

        return wrapper

    return decorator


def reset_breakers() -> None:
    for breaker in ALL_BREAKERS:
        breaker.close()


__all__ = [
    "hotel_breaker",
    "flight_breaker",
    "stripe_breaker",
    "async_provider_breaker",
    "reset_breakers",
    "CircuitBreakerError",
]

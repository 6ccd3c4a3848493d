"""
Circuit Breaker configuration for the SMS provider.

Offer, confirmation and expiry messages all go through the same provider
account, so a single breaker guards every outbound send. When the provider
is down sends fail fast with CIRCUIT_OPEN instead of holding a webhook or a
sweep for the full request timeout.

Circuit Breaker Pattern:
- CLOSED: Normal operation, requests pass through
- OPEN: Too many failures, requests fail immediately
- HALF_OPEN: Testing if service recovered, limited requests allowed
"""

import logging

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)


sms_breaker = CircuitBreaker(
    fail_max=5,  # Open circuit after 5 consecutive failures
    reset_timeout=60,  # Wait 60 seconds before attempting recovery
    name="sms_circuit_breaker",
)


def log_circuit_state_change(breaker_name: str, old_state: str, new_state: str):
    """Log breaker transitions; an open SMS circuit means offers are not reaching drivers."""
    logger.warning(
        "Circuit breaker state changed",
        extra={
            "breaker_name": breaker_name,
            "old_state": old_state,
            "new_state": new_state,
        }
    )


class StateChangeLogger(CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        old_name = old_state.name if old_state is not None else "none"
        log_circuit_state_change(self.name, old_name, new_state.name)


sms_breaker.add_listener(StateChangeLogger("sms"))


__all__ = [
    "sms_breaker",
    "CircuitBreakerError",
]

"""Runtime configuration for subscription processing.

Provides get_config() / configure() / reset_config(). Defaults can be
overridden from the environment at first access, or at runtime (tests,
host applications substituting their own dispatchers).
"""

import os
from dataclasses import dataclass, field, replace
from datetime import timedelta


def _dispatcher(name: str):
    def factory():
        from subscriptions.checkout import dispatchers

        return getattr(dispatchers, name)

    return field(default_factory=factory)


def _days_from_env(var: str, default: int) -> timedelta:
    return timedelta(days=int(os.getenv(var, default)))


@dataclass(frozen=True)
class SubscriptionConfig:
    # How long to wait before retrying an installment that could not be fulfilled
    reprocessing_interval: timedelta = timedelta(days=1)
    # Cancellations requested closer than this to the next actionable date
    # still ship one last installment
    minimum_cancellation_notice: timedelta = timedelta(days=1)
    default_store_id: str = "default"
    currency: str = "USD"

    success_dispatcher_class: type = _dispatcher("SuccessDispatcher")
    failure_dispatcher_class: type = _dispatcher("FailureDispatcher")
    payment_failed_dispatcher_class: type = _dispatcher("PaymentFailedDispatcher")
    out_of_stock_dispatcher_class: type = _dispatcher("OutOfStockDispatcher")

    @classmethod
    def from_env(cls) -> "SubscriptionConfig":
        return cls(
            reprocessing_interval=_days_from_env("SUBSCRIPTIONS_REPROCESSING_INTERVAL_DAYS", 1),
            minimum_cancellation_notice=_days_from_env("SUBSCRIPTIONS_MINIMUM_CANCELLATION_NOTICE_DAYS", 1),
            default_store_id=os.getenv("SUBSCRIPTIONS_DEFAULT_STORE_ID", "default"),
            currency=os.getenv("SUBSCRIPTIONS_CURRENCY", "USD"),
        )


_current_config: SubscriptionConfig | None = None


def get_config() -> SubscriptionConfig:
    """Return the active configuration, loading it from the environment on first use."""
    global _current_config
    if _current_config is None:
        _current_config = SubscriptionConfig.from_env()
    return _current_config


def configure(**overrides) -> SubscriptionConfig:
    """Override individual settings on top of the active configuration."""
    global _current_config
    _current_config = replace(get_config(), **overrides)
    return _current_config


def reset_config() -> None:
    global _current_config
    _current_config = None

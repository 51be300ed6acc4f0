from datetime import timedelta

from codeshare.application.services.maintenance_service import MaintenanceService
from codeshare.application.services.rate_limiter import LoginRateLimiter
from codeshare.infrastructure.persistence.migrations import MigrationRunner


def test_five_attempts_allowed_then_denied(rate_limiter, clock):
    first = clock()
    for _ in range(5):
        assert rate_limiter.check("ada@example.com").allowed
        clock.advance(seconds=10)

    denied = rate_limiter.check("ada@example.com")

    assert not denied.allowed
    assert denied.retry_after >= first + timedelta(minutes=15)


def test_window_resets_after_expiry(rate_limiter, clock):
    for _ in range(6):
        rate_limiter.check("ada@example.com")

    clock.advance(minutes=15)

    assert rate_limiter.check("ada@example.com").allowed


def test_identifiers_are_normalised_and_independent(rate_limiter):
    for _ in range(5):
        rate_limiter.check("Ada@Example.com ")

    assert not rate_limiter.check("ada@example.com").allowed
    assert rate_limiter.check("bob@example.com").allowed


def test_reset_clears_attempts(rate_limiter):
    for _ in range(5):
        rate_limiter.check("ada@example.com")

    rate_limiter.reset("ada@example.com")

    assert rate_limiter.check("ada@example.com").allowed


def test_custom_limits(clock):
    limiter = LoginRateLimiter(max_attempts=2, window=timedelta(minutes=1), clock=clock)

    assert limiter.check("x").allowed
    assert limiter.check("x").allowed
    assert limiter.check("x").retry_after == clock() + timedelta(minutes=1)


def test_elapsed_windows_are_forgotten(rate_limiter, clock):
    rate_limiter.check("ada@example.com")
    rate_limiter.check("bob@example.com")
    clock.advance(minutes=10)
    rate_limiter.check("cy@example.com")
    clock.advance(minutes=5)

    assert rate_limiter.purge_expired() == 2
    assert rate_limiter.purge_expired() == 0

    clock.advance(minutes=15)
    rate_limiter.check("dee@example.com")

    assert rate_limiter.purge_expired() == 0


def test_maintenance_cleanup_purges_login_windows(database, auth_service, events, rate_limiter, clock):
    maintenance = MaintenanceService(database, MigrationRunner(database, []), auth_service, events)
    rate_limiter.check("ada@example.com")
    clock.advance(minutes=15)

    assert maintenance.cleanup() == {"resetTokens": 0, "sessions": 0, "loginAttempts": 1}

"""
Tests de reintento ante deadlocks de MySQL.

Verifica que el retry automático funciona correctamente:
- Detecta errores MySQL 1213 (Deadlock) y 1205 (Lock wait timeout)
- Detecta el deadlock aunque el repositorio lo haya envuelto en PersistenceError
- Reintenta con exponential backoff y se rinde después de max_attempts
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.errors import PersistenceError
from app.infrastructure.db.retry import is_deadlock_error, retry_on_deadlock


def _deadlock() -> OperationalError:
    return OperationalError(
        "statement",
        "params",
        "(asyncmy.errors.OperationalError) (1213, 'Deadlock found when trying to get lock')",
        connection_invalidated=False,
    )


def _wrapped_deadlock() -> PersistenceError:
    """Así lo propagan los repositorios SQL: PersistenceError con el error original como causa."""
    try:
        try:
            raise _deadlock()
        except OperationalError as exc:
            raise PersistenceError("Failed to update booking payment totals") from exc
    except PersistenceError as wrapped:
        return wrapped


class TestDeadlockDetection:
    def test_detect_mysql_deadlock_error_1213(self):
        assert is_deadlock_error(_deadlock()), "Error 1213 no detectado como deadlock"

    def test_detect_mysql_lock_timeout_error_1205(self):
        error = OperationalError(
            "statement",
            "params",
            "(asyncmy.errors.OperationalError) (1205, 'Lock wait timeout exceeded')",
            connection_invalidated=False,
        )

        assert is_deadlock_error(error), "Error 1205 no detectado como deadlock"

    def test_detect_deadlock_wrapped_in_persistence_error(self):
        assert is_deadlock_error(_wrapped_deadlock())

    def test_ignore_non_deadlock_errors(self):
        assert not is_deadlock_error(Exception("Generic error"))

        other_op_error = OperationalError(
            "statement",
            "params",
            "(asyncmy.errors.OperationalError) (2013, 'Lost connection to MySQL server')",
            connection_invalidated=False,
        )
        assert not is_deadlock_error(other_op_error)
        assert not is_deadlock_error(PersistenceError("Failed to record confirmation"))


class TestRetryLogic:
    @pytest.mark.asyncio
    async def test_retry_succeeds_on_first_attempt(self):
        call_count = 0

        async def successful_func():
            nonlocal call_count
            call_count += 1
            return "success"

        result = await retry_on_deadlock(successful_func, max_attempts=3)

        assert result == "success"
        assert call_count == 1, "No debería haber retries si tiene éxito"

    @pytest.mark.asyncio
    async def test_retry_on_deadlock_until_success(self):
        call_count = 0

        async def func_fails_twice_then_succeeds():
            nonlocal call_count
            call_count += 1
            if call_count <= 2:
                raise _wrapped_deadlock()
            return {"received": True}

        result = await retry_on_deadlock(func_fails_twice_then_succeeds, max_attempts=3, base_delay=0.01)

        assert result == {"received": True}
        assert call_count == 3, "Debería haber reintentado 2 veces antes de tener éxito"

    @pytest.mark.asyncio
    async def test_retry_fails_after_max_attempts(self):
        call_count = 0

        async def always_fails():
            nonlocal call_count
            call_count += 1
            raise _deadlock()

        with pytest.raises(OperationalError):
            await retry_on_deadlock(always_fails, max_attempts=3, base_delay=0.01)

        assert call_count == 3, "Debería haber intentado max_attempts veces"

    @pytest.mark.asyncio
    async def test_non_deadlock_error_not_retried(self):
        call_count = 0

        async def raises_non_deadlock_error():
            nonlocal call_count
            call_count += 1
            raise ValueError("Not a deadlock")

        with pytest.raises(ValueError, match="Not a deadlock"):
            await retry_on_deadlock(raises_non_deadlock_error, max_attempts=3)

        assert call_count == 1, "No debería reintentar errores que no son deadlocks"

    @pytest.mark.asyncio
    async def test_exponential_backoff(self):
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)

        async def always_fails():
            raise _deadlock()

        with patch("app.infrastructure.db.retry.asyncio.sleep", side_effect=fake_sleep):
            with pytest.raises(OperationalError):
                await retry_on_deadlock(always_fails, max_attempts=3, base_delay=0.1)

        assert delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_logging_on_retry(self):
        with patch("app.infrastructure.db.retry.logger") as mock_logger:
            call_count = 0

            async def func_fails_once():
                nonlocal call_count
                call_count += 1
                if call_count == 1:
                    raise _deadlock()
                return "success"

            await retry_on_deadlock(func_fails_once, max_attempts=3, base_delay=0.01)

            assert mock_logger.warning.called, "No se hizo logging del retry"
            message = mock_logger.warning.call_args[0][0]
            assert "deadlock" in message.lower()

"""
Integration tests for deadlock retry.

Verifica que el retry automático de deadlocks funciona correctamente:
- Detecta MySQL 1213 (Deadlock) y 1205 (Lock wait timeout)
- Detecta PostgreSQL 40001 (serialization failure) y 40P01 (deadlock)
- Reintenta automáticamente con exponential backoff
- Se rinde después del max_attempts
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from farmout_dispatch.infrastructure.db.retry import (
    is_deadlock_error,
    retry_on_deadlock,
    with_deadlock_retry,
)


def deadlock(message: str = "(pymysql.err.OperationalError) (1213, 'Deadlock found')"):
    return OperationalError("statement", "params", message, connection_invalidated=False)


class TestDeadlockDetection:
    """Tests para verificar detección de deadlocks"""

    def test_detect_mysql_deadlock_error_1213(self):
        assert is_deadlock_error(deadlock()), "Error 1213 no detectado como deadlock"

    def test_detect_mysql_lock_timeout_error_1205(self):
        error = deadlock("(pymysql.err.OperationalError) (1205, 'Lock wait timeout exceeded')")
        assert is_deadlock_error(error), "Error 1205 no detectado como deadlock"

    def test_detect_postgres_serialization_failure(self):
        error = deadlock(
            "(sqlalchemy.dialects.postgresql.asyncpg.Error) "
            "SerializationError: could not serialize access (SQLSTATE 40001)"
        )
        assert is_deadlock_error(error)

    def test_detect_postgres_deadlock(self):
        error = deadlock("DeadlockDetectedError: deadlock detected (SQLSTATE 40P01)")
        assert is_deadlock_error(error)

    def test_ignore_non_deadlock_errors(self):
        assert not is_deadlock_error(Exception("Generic error"))
        assert not is_deadlock_error(
            deadlock("(pymysql.err.OperationalError) (2013, 'Lost connection to MySQL server')")
        )


class TestRetryLogic:
    """Tests para verificar lógica de retry"""

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
                raise deadlock()
            return "success_after_retries"

        result = await retry_on_deadlock(func_fails_twice_then_succeeds, max_attempts=3, base_delay=0.01)

        assert result == "success_after_retries"
        assert call_count == 3, "Debería haber reintentado 2 veces antes de tener éxito"

    @pytest.mark.asyncio
    async def test_retry_fails_after_max_attempts(self):
        call_count = 0

        async def always_fails():
            nonlocal call_count
            call_count += 1
            raise deadlock()

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
    async def test_exponential_backoff_delays(self):
        """Los delays siguen base_delay * 2**attempt: 0.1s, 0.2s."""

        async def always_fails():
            raise deadlock()

        with patch(
            "farmout_dispatch.infrastructure.db.retry.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            with pytest.raises(OperationalError):
                await retry_on_deadlock(always_fails, max_attempts=3, base_delay=0.1)

        delays = [call.args[0] for call in mock_sleep.call_args_list]
        assert delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_logs_each_retry(self):
        call_count = 0

        async def func_fails_once():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise deadlock()
            return "success"

        with patch("farmout_dispatch.infrastructure.db.retry.logger") as mock_logger:
            await retry_on_deadlock(func_fails_once, max_attempts=3, base_delay=0.01)

        assert mock_logger.warning.called, "No se hizo logging del retry"
        assert "deadlock" in mock_logger.warning.call_args[0][0].lower()


class TestDecorator:
    """Tests para el decorator @with_deadlock_retry"""

    @pytest.mark.asyncio
    async def test_decorator_basic_usage(self):
        call_count = 0

        @with_deadlock_retry(max_attempts=3, base_delay=0.01)
        async def decorated_func():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise deadlock()
            return "decorated_success"

        result = await decorated_func()
        assert result == "decorated_success"
        assert call_count == 2

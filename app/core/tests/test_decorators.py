"""
Tests for retry_on_transient.

Tests verify:
- Successful calls pass through untouched
- Transient database errors are retried with doubling backoff
- Exhausted retries raise TransientStoreError with context
- Other errors propagate immediately
"""

from unittest.mock import MagicMock, call

import pytest
from django.db import IntegrityError, InterfaceError, OperationalError

from core.decorators import retry_on_transient
from core.exceptions import TransientStoreError


@pytest.fixture
def mock_sleep(mocker):
    return mocker.patch("core.decorators.time.sleep")


def _decorated(side_effect, **options):
    func = MagicMock(side_effect=side_effect, __name__="append_message")
    return func, retry_on_transient("append_message", **options)(func)


class TestRetryOnTransient:
    """Tests for the retry_on_transient decorator."""

    def test_passes_through_result(self, mock_sleep):
        func, wrapped = _decorated(None, attempts=3, backoff=0.1)
        func.return_value = "ok"

        assert wrapped(1, key="value") == "ok"
        func.assert_called_once_with(1, key="value")
        mock_sleep.assert_not_called()

    def test_retries_then_succeeds(self, mock_sleep):
        func, wrapped = _decorated(
            [OperationalError("deadlock"), InterfaceError("closed"), "ok"],
            attempts=3,
            backoff=0.1,
        )

        assert wrapped() == "ok"
        assert func.call_count == 3
        assert mock_sleep.call_args_list == [call(0.1), call(0.2)]

    def test_exhausted_raises_transient_store_error(self, mock_sleep):
        cause = OperationalError("server closed the connection")
        func, wrapped = _decorated(cause, attempts=2, backoff=0.1)

        with pytest.raises(TransientStoreError) as exc_info:
            wrapped()

        assert func.call_count == 2
        assert exc_info.value.details == {"operation": "append_message", "attempts": 2}
        assert exc_info.value.__cause__ is cause
        assert mock_sleep.call_count == 1

    def test_other_errors_not_retried(self, mock_sleep):
        func, wrapped = _decorated(IntegrityError("duplicate"), attempts=3, backoff=0.1)

        with pytest.raises(IntegrityError):
            wrapped()

        assert func.call_count == 1

    def test_defaults_read_from_settings(self, settings, mock_sleep):
        settings.STORE_RETRY_ATTEMPTS = 4
        settings.STORE_RETRY_BACKOFF = 0.5
        func, wrapped = _decorated(OperationalError("locked"))

        with pytest.raises(TransientStoreError):
            wrapped()

        assert func.call_count == 4
        assert mock_sleep.call_args_list == [call(0.5), call(1.0), call(2.0)]

    def test_zero_backoff_does_not_sleep(self, mock_sleep):
        func, wrapped = _decorated(
            [OperationalError("locked"), "ok"], attempts=2, backoff=0
        )

        assert wrapped() == "ok"
        mock_sleep.assert_not_called()

# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from typing import Any

import httpx
import pytest

from cosmow.exceptions import (
    ConnectionFailureException,
    CursorNotFoundException,
    InvalidQueryException,
    TransientCursorException,
)
from cosmow.retry import RetryPolicy


class FlakyOperation:
    """An operation failing with the queued exceptions, then returning 'ok'."""

    def __init__(self, *failures: BaseException) -> None:
        self.failures = list(failures)
        self.attempts = 0

    def __call__(self) -> str:
        self.attempts += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


class RecreateCounter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def _always_failing(bound: int) -> tuple[FlakyOperation, list[BaseException]]:
    failures: list[BaseException] = [
        ConnectionFailureException(f"failure #{i}") for i in range(bound + 1)
    ]
    return FlakyOperation(*failures), list(failures)


class TestRetryPolicy:
    @pytest.mark.parametrize("bound", [0, 1, 2, 5])
    @pytest.mark.describe("test of retry policy exhaustion raising the first failure")
    def test_retrypolicy_exhaustion_first_failure(self, bound: int) -> None:
        operation, failures = _always_failing(bound)
        recreate = RecreateCounter()
        with pytest.raises(ConnectionFailureException) as exc_info:
            RetryPolicy(bound).execute(operation, recreate=recreate)
        assert exc_info.value is failures[0]
        assert operation.attempts == bound + 1
        # no recreate after the last attempt
        assert recreate.calls == bound

    @pytest.mark.parametrize("bound", [1, 3])
    @pytest.mark.describe("test of retry policy recovering after one failure")
    def test_retrypolicy_recovery(self, bound: int) -> None:
        operation = FlakyOperation(CursorNotFoundException("reaped", cursor_id=123))
        recreate = RecreateCounter()
        assert RetryPolicy(bound).execute(operation, recreate=recreate) == "ok"
        assert operation.attempts == 2
        assert recreate.calls == 1

    @pytest.mark.describe("test of retry policy never retrying permanent failures")
    def test_retrypolicy_permanent(self) -> None:
        failure = InvalidQueryException("unknown operator $foo")
        operation = FlakyOperation(failure)
        recreate = RecreateCounter()
        with pytest.raises(InvalidQueryException) as exc_info:
            RetryPolicy(3).execute(operation, recreate=recreate)
        assert exc_info.value is failure
        assert operation.attempts == 1
        assert recreate.calls == 0

    @pytest.mark.describe("test of retry policy with a bound of zero")
    def test_retrypolicy_zero_bound(self) -> None:
        failure = TransientCursorException("timed out")
        operation = FlakyOperation(failure)
        recreate = RecreateCounter()
        with pytest.raises(TransientCursorException) as exc_info:
            RetryPolicy(0).execute(operation, recreate=recreate)
        assert exc_info.value is failure
        assert operation.attempts == 1
        assert recreate.calls == 0
        assert RetryPolicy().execute(FlakyOperation()) == "ok"

    @pytest.mark.describe("test of retry policy not chaining later failures")
    def test_retrypolicy_no_chaining(self) -> None:
        operation, failures = _always_failing(2)
        with pytest.raises(ConnectionFailureException) as exc_info:
            RetryPolicy(2).execute(operation)
        assert exc_info.value.__context__ is None

    @pytest.mark.describe("test of retry policy on mixed failures")
    def test_retrypolicy_mixed_failures(self) -> None:
        transient = ConnectionFailureException("lost")
        permanent = InvalidQueryException("bad")
        operation = FlakyOperation(transient, permanent)
        with pytest.raises(InvalidQueryException) as exc_info:
            RetryPolicy(5).execute(operation)
        assert exc_info.value is permanent
        assert operation.attempts == 2

    @pytest.mark.describe("test of retry policy classifying httpx transport errors")
    def test_retrypolicy_httpx_errors(self) -> None:
        operation = FlakyOperation(
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
        )
        assert RetryPolicy(2).execute(operation) == "ok"
        assert operation.attempts == 3

        status_error = httpx.HTTPStatusError(
            "server error",
            request=httpx.Request("GET", "http://localhost:8098/ping"),
            response=httpx.Response(status_code=500),
        )
        failing = FlakyOperation(status_error)
        with pytest.raises(httpx.HTTPStatusError):
            RetryPolicy(2).execute(failing)
        assert failing.attempts == 1

    @pytest.mark.describe("test of retry policy with a custom classification")
    def test_retrypolicy_custom_predicate(self) -> None:
        def is_transient(exc: BaseException) -> bool:
            return isinstance(exc, KeyError)

        operation = FlakyOperation(KeyError("x"))
        assert RetryPolicy(1, is_transient=is_transient).execute(operation) == "ok"

        failure: Any = ConnectionFailureException("lost")
        with pytest.raises(ConnectionFailureException):
            RetryPolicy(1, is_transient=is_transient).execute(FlakyOperation(failure))

    @pytest.mark.describe("test of retry policy bound coercion")
    def test_retrypolicy_coercion(self) -> None:
        assert RetryPolicy(True).retries == 1
        assert RetryPolicy(False).retries == 0
        assert "retries=4" in repr(RetryPolicy(4))

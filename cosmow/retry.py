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

import logging
from typing import Callable, TypeVar, cast

from cosmow.exceptions import is_transient_exception

R = TypeVar("R")


logger = logging.getLogger(__name__)


class RetryPolicy:
    """
    Bounded, backoff-free retrying of an operation that may fail transiently.

    With a bound of N, an operation is attempted at most N+1 times. Should
    every attempt fail, the exception raised is the one from the *first*
    attempt: later failures often are side effects of retrying (e.g. against
    a stream that was reopened) and would hide the original symptom.

    Only exceptions for which the classification predicate returns True are
    retried; any other exception propagates immediately, without consuming
    an attempt.

    Args:
        retries: the number of retries allowed after the first attempt.
            Booleans are accepted (True meaning one retry). Zero disables
            retrying entirely: the operation is invoked once and any
            exception is propagated untouched.
        is_transient: a predicate classifying exceptions as retryable.
            Defaults to `cosmow.exceptions.is_transient_exception`.
    """

    retries: int
    is_transient: Callable[[BaseException], bool]

    def __init__(
        self,
        retries: int | bool = 0,
        *,
        is_transient: Callable[[BaseException], bool] = is_transient_exception,
    ) -> None:
        self.retries = int(retries)
        self.is_transient = is_transient

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(retries={self.retries})"

    def execute(
        self,
        operation: Callable[[], R],
        recreate: Callable[[], None] | None = None,
    ) -> R:
        """
        Run an operation under this policy.

        Args:
            operation: a zero-argument callable to invoke.
            recreate: if provided, a zero-argument callable invoked after
                each absorbed failure and before the next attempt (to reopen
                whatever resource the operation works against).

        Returns:
            the return value of the first successful invocation of `operation`.
        """
        if self.retries < 1:
            return operation()

        first_exception: BaseException | None = None
        for attempt in range(self.retries + 1):
            try:
                return operation()
            except Exception as exc:
                if not self.is_transient(exc):
                    raise
                if first_exception is None:
                    first_exception = exc
                logger.info(
                    f"attempt {attempt + 1}/{self.retries + 1} failed "
                    f"transiently: {exc!r}"
                )
            if attempt == self.retries:
                break
            if recreate is not None:
                recreate()

        # outside of any except block: no later failure is chained as context
        logger.info(f"giving up, raising the first failure: {first_exception!r}")
        raise cast(BaseException, first_exception)

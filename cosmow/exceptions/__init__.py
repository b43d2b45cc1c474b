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

import httpx

from cosmow.exceptions.base_exceptions import (
    CosmoWException,
    PermanentException,
    TransientException,
)
from cosmow.exceptions.connection_exceptions import (
    AuthorizationException,
    ConnectionFailureException,
)
from cosmow.exceptions.cursor_exceptions import (
    CursorException,
    CursorNotFoundException,
    InvalidQueryException,
    LargeObjectException,
    TransientCursorException,
)


def is_transient_exception(exc: BaseException) -> bool:
    """
    Classify an exception as transient (worth retrying against a fresh
    stream) or not.

    Transient are all `TransientException` subclasses and the network-level
    failures of HTTP transports (`httpx.TransportError`: connection errors,
    timeouts, protocol errors). Anything else, HTTP status errors included,
    is considered permanent.
    """
    return isinstance(exc, (TransientException, httpx.TransportError))


__all__ = [
    "AuthorizationException",
    "ConnectionFailureException",
    "CosmoWException",
    "CursorException",
    "CursorNotFoundException",
    "InvalidQueryException",
    "LargeObjectException",
    "PermanentException",
    "TransientCursorException",
    "TransientException",
    "is_transient_exception",
]

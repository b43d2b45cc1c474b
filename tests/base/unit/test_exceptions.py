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
import pytest

from cosmow.exceptions import (
    AuthorizationException,
    ConnectionFailureException,
    CosmoWException,
    CursorException,
    CursorNotFoundException,
    InvalidQueryException,
    LargeObjectException,
    PermanentException,
    TransientCursorException,
    TransientException,
    is_transient_exception,
)


class TestExceptions:
    @pytest.mark.describe("test of exception classification")
    def test_exceptions_classification(self) -> None:
        transient = [
            TransientException(),
            TransientCursorException("batch timed out"),
            CursorNotFoundException(cursor_id=12),
            ConnectionFailureException(server="http://localhost:8098"),
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
        ]
        permanent = [
            PermanentException(),
            CursorException("misuse"),
            InvalidQueryException("bad filter"),
            AuthorizationException("who are you"),
            LargeObjectException("nothing here"),
            ValueError("plain"),
        ]
        for exc in transient:
            assert is_transient_exception(exc), repr(exc)
        for exc in permanent:
            assert not is_transient_exception(exc), repr(exc)
        for exc in transient[:4] + permanent[:5]:
            assert isinstance(exc, CosmoWException)

    @pytest.mark.describe("test of exception string forms")
    def test_exceptions_str(self) -> None:
        assert str(CosmoWException("plain text")) == "plain text"
        assert str(TransientException()) == "TransientException"
        assert (
            str(CursorException("Options are frozen", cursor_state="iterating"))
            == "Options are frozen (cursor state: iterating)"
        )
        assert str(CursorException("Options are frozen")) == "Options are frozen"
        assert (
            str(ConnectionFailureException("Refused", server="http://db:8098"))
            == "Refused (server: http://db:8098)"
        )
        assert str(ConnectionFailureException()) == "Connection failure"

    @pytest.mark.describe("test of exception attributes")
    def test_exceptions_attributes(self) -> None:
        not_found = CursorNotFoundException("reaped", cursor_id=99)
        assert not_found.text == "reaped"
        assert not_found.cursor_id == 99
        with pytest.raises(TransientCursorException):
            raise not_found
        lo_exc = LargeObjectException("nothing", filename="/tmp/x")
        assert lo_exc.filename == "/tmp/x"

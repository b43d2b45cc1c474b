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

from dataclasses import dataclass
from typing import Any

from cosmow.exceptions.base_exceptions import PermanentException, TransientException


@dataclass
class CursorException(PermanentException):
    """
    A cursor was used in a way its current state does not allow, for example
    changing its configuration after iteration has started without resetting
    it first.

    Attributes:
        text: a text message about the exception.
        cursor_state: the state of the cursor when the misuse was detected.
    """

    cursor_state: str | None

    def __init__(self, text: str, *, cursor_state: str | None = None) -> None:
        super().__init__(text)
        self.cursor_state = cursor_state

    def __str__(self) -> str:
        if self.cursor_state:
            return f"{self.text} (cursor state: {self.cursor_state})"
        return self.text or ""


class TransientCursorException(TransientException):
    """
    The server reported a cursor failure that a freshly opened stream can
    recover from (e.g. a timeout while a batch was being produced).
    """

    pass


@dataclass
class CursorNotFoundException(TransientCursorException):
    """
    The server no longer knows the cursor backing the stream, typically
    because it was reaped after being idle.

    Attributes:
        text: a text message about the exception.
        cursor_id: the server-side identifier of the missing cursor, if known.
    """

    cursor_id: Any

    def __init__(self, text: str | None = None, *, cursor_id: Any = None) -> None:
        super().__init__(text)
        self.cursor_id = cursor_id


class InvalidQueryException(PermanentException):
    """
    The server rejected the query itself (malformed filter, unknown operator,
    invalid sort specification and the like).
    """

    pass


@dataclass
class LargeObjectException(PermanentException):
    """
    An operation on a large-object file value cannot be carried out, such as
    writing out a file that has neither pending bytes nor a stored counterpart.

    Attributes:
        text: a text message about the exception.
        filename: the file name involved in the operation, if any.
    """

    filename: str | None

    def __init__(self, text: str, *, filename: str | None = None) -> None:
        super().__init__(text)
        self.filename = filename

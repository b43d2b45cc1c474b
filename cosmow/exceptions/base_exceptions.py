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


@dataclass
class CosmoWException(Exception):
    """
    Any exception raised by cosmow itself, as opposed to a bare error
    bubbling up from the transport (e.g. a socket error).

    Attributes:
        text: a text message about the exception.
    """

    text: str | None

    def __init__(self, text: str | None = None) -> None:
        super().__init__(text)
        self.text = text

    def __str__(self) -> str:
        return self.text or self.__class__.__name__


class TransientException(CosmoWException):
    """
    A failure that is likely to go away if the operation is attempted again
    against a fresh connection or a freshly opened stream, such as a dropped
    connection or a server-side cursor that has expired.

    Transient exceptions are the only ones eligible for retrying.
    """

    pass


class PermanentException(CosmoWException):
    """
    A failure that retrying cannot fix: a malformed query, an authorization
    problem or a programming error. These are always propagated on their
    first occurrence.
    """

    pass

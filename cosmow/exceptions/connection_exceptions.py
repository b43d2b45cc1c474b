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

from cosmow.exceptions.base_exceptions import PermanentException, TransientException


@dataclass
class ConnectionFailureException(TransientException):
    """
    The connection to the server was lost or could not be established.

    Attributes:
        text: a text message about the exception.
        server: the server address the connection was aimed at, if known.
    """

    server: str | None

    def __init__(self, text: str | None = None, *, server: str | None = None) -> None:
        super().__init__(text)
        self.server = server

    def __str__(self) -> str:
        if self.server:
            return f"{self.text or 'Connection failure'} (server: {self.server})"
        return self.text or "Connection failure"


class AuthorizationException(PermanentException):
    """
    The server refused the operation because of missing or insufficient
    credentials.
    """

    pass

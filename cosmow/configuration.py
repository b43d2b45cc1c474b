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
from typing import Any, Callable, Dict

from cosmow.settings.defaults import (
    DEFAULT_RETRY_CONNECT,
    DEFAULT_RETRY_QUERY,
    DEFAULT_SERVER,
)
from cosmow.utils.unset import _UNSET, UnsetType

LoggerCallable = Callable[[Dict[str, Any]], None]


@dataclass
class ConfigurationOverride:
    """
    A partial set of connection/query settings, used to override a subset
    of a full `Configuration`. Attributes left unspecified keep the value of
    the configuration they are applied onto.

    Attributes:
        server: the address of the server.
        retry_connect: how many times connecting is retried after a transient
            failure.
        retry_query: how many times cursor operations are retried after a
            transient failure.
        logger_callable: a callable receiving a dictionary describing each
            query issued, or None to disable query logging.
    """

    server: str | UnsetType = _UNSET
    retry_connect: int | UnsetType = _UNSET
    retry_query: int | UnsetType = _UNSET
    logger_callable: LoggerCallable | None | UnsetType = _UNSET


@dataclass
class Configuration:
    """
    The settings governing a `Connection` and everything spawned from it
    (collections and their cursors).

    Attributes:
        server: the address of the server. Defaults to "http://localhost:8098".
        retry_connect: the number of times to retry establishing the connection
            after a transient failure. Zero (the default) means no retries:
            the first failure propagates.
        retry_query: the number of times to retry a cursor operation after a
            transient failure, recreating the cursor stream in between.
            Zero (the default) disables retries altogether.
        logger_callable: if provided, a callable receiving a dictionary that
            describes each query issued through a collection.
    """

    server: str
    retry_connect: int
    retry_query: int
    logger_callable: LoggerCallable | None

    def __init__(
        self,
        *,
        server: str = DEFAULT_SERVER,
        retry_connect: int | bool = DEFAULT_RETRY_CONNECT,
        retry_query: int | bool = DEFAULT_RETRY_QUERY,
        logger_callable: LoggerCallable | None = None,
    ) -> None:
        self.server = server
        # booleans are accepted too: True means "retry once"
        self.retry_connect = int(retry_connect)
        self.retry_query = int(retry_query)
        self.logger_callable = logger_callable

    def with_override(
        self, other: ConfigurationOverride | None | UnsetType
    ) -> Configuration:
        """
        Given an "overriding" set of settings, possibly not defined in all its
        attributes, apply the override logic and return a new configuration.

        Args:
            other: a not-necessarily-fully-specified override. All its defined
                settings take precedence.
        """

        if other is None or isinstance(other, UnsetType):
            return self
        return Configuration(
            server=(
                other.server
                if not isinstance(other.server, UnsetType)
                else self.server
            ),
            retry_connect=(
                other.retry_connect
                if not isinstance(other.retry_connect, UnsetType)
                else self.retry_connect
            ),
            retry_query=(
                other.retry_query
                if not isinstance(other.retry_query, UnsetType)
                else self.retry_query
            ),
            logger_callable=(
                other.logger_callable
                if not isinstance(other.logger_callable, UnsetType)
                else self.logger_callable
            ),
        )

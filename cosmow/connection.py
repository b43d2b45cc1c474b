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
from typing import Any, Iterable

from cosmow.collection import Collection
from cosmow.configuration import Configuration, ConfigurationOverride
from cosmow.read_target import (
    ReadTarget,
    ReadTargetKind,
    ReadTargetTranslator,
    convert_tag_sets,
)
from cosmow.retry import RetryPolicy
from cosmow.settings.defaults import (
    CONNECT_TIMEOUT_OPTION,
    LEGACY_CONNECT_TIMEOUT_OPTION,
    LEGACY_WRITE_TIMEOUT_OPTION,
    WRITE_TIMEOUT_OPTION,
)
from cosmow.transport import Transport, TransportCapabilities, TransportFactory
from cosmow.utils.unset import UnsetType

logger = logging.getLogger(__name__)


def _rename_option(options: dict[str, Any], legacy_name: str, name: str) -> dict[str, Any]:
    """Move a legacy-named option to its canonical name, unless the latter is set."""
    if legacy_name in options and name not in options:
        renamed = dict(options)
        renamed[name] = renamed.pop(legacy_name)
        return renamed
    return options


def convert_timeout_options(
    options: dict[str, Any], capabilities: TransportCapabilities
) -> dict[str, Any]:
    """
    Rename the "timeout" and "wTimeout" connection options to "connectTimeoutMS"
    and "wTimeoutMS" for transports expecting the latter. Only the canonical
    spelling of each option is considered.
    """
    if not capabilities.renames_timeout_options:
        return options
    _options = _rename_option(options, LEGACY_CONNECT_TIMEOUT_OPTION, CONNECT_TIMEOUT_OPTION)
    return _rename_option(_options, LEGACY_WRITE_TIMEOUT_OPTION, WRITE_TIMEOUT_OPTION)


class Connection:
    """
    A connection to a server, established lazily the first time it is needed.

    Args:
        server: the server address. Defaults to the one in the configuration.
        options: connection options passed over to the transport.
        configuration: a `Configuration`. If not provided, defaults apply.
        transport_factory: the factory creating the transport that actually
            talks to the server.

    Example:
        >>> connection = Connection(
        ...     "http://10.0.0.5:8098",
        ...     configuration=Configuration(retry_connect=2, retry_query=3),
        ...     transport_factory=my_transport_factory,
        ... )
        >>> orders = connection.select_collection("shop", "orders")
    """

    _server: str
    _options: dict[str, Any]
    _configuration: Configuration
    _transport_factory: TransportFactory
    _transport: Transport | None

    def __init__(
        self,
        server: str | None = None,
        options: dict[str, Any] | None = None,
        *,
        configuration: Configuration | None = None,
        transport_factory: TransportFactory,
    ) -> None:
        self._configuration = configuration if configuration is not None else Configuration()
        self._server = server or self._configuration.server
        self._options = dict(options or {})
        self._transport_factory = transport_factory
        self._transport = None

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(server="{self._server}")'

    def __str__(self) -> str:
        return self._server

    @property
    def server(self) -> str:
        return self._server

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def capabilities(self) -> TransportCapabilities:
        return self._transport_factory.capabilities

    def with_configuration(self, override: ConfigurationOverride) -> Connection:
        """
        Create a clone of this connection, not yet connected, with some of
        the configuration settings overridden.

        Example:
            >>> patient = connection.with_configuration(
            ...     ConfigurationOverride(retry_query=5)
            ... )
        """
        return Connection(
            override.server
            if not isinstance(override.server, UnsetType)
            else self._server,
            self._options,
            configuration=self._configuration.with_override(override),
            transport_factory=self._transport_factory,
        )

    def _connect(self) -> Transport:
        options = convert_timeout_options(self._options, self.capabilities)
        logger.info(f"connecting to {self._server}")
        transport = RetryPolicy(self._configuration.retry_connect).execute(
            lambda: self._transport_factory.connect(self._server, options)
        )
        logger.info(f"connected to {self._server}")
        return transport

    def initialize(self) -> None:
        """
        Establish the connection if not done yet. Transient failures are
        retried as many times as the configuration's `retry_connect`.
        """
        self.get_transport()

    def is_connected(self) -> bool:
        return self._transport is not None

    def close(self) -> None:
        """Close the connection. It will be re-established upon next use."""
        if self._transport is not None:
            logger.info(f"closing connection to {self._server}")
            self._transport.close()
            self._transport = None

    def get_transport(self) -> Transport:
        """Return the connected transport, connecting first if needed."""
        if self._transport is None:
            self._transport = self._connect()
        return self._transport

    def select_collection(self, database: str, name: str) -> Collection:
        """
        Get a collection. Its cursors retry operations as many times as the
        configuration's `retry_query`.
        """
        return Collection(
            connection=self,
            database=database,
            name=name,
            retries=self._configuration.retry_query,
        )

    def log(self, entry: dict[str, Any]) -> None:
        """Pass a query description to the configured logger callable, if any."""
        if self._configuration.logger_callable is not None:
            self._configuration.logger_callable(entry)

    def get_read_target(self) -> ReadTarget:
        return ReadTargetTranslator.normalize(self.get_transport().get_read_target())

    def set_read_target(
        self,
        kind: ReadTargetKind | str,
        tag_sets: Iterable[Any] | None = None,
    ) -> None:
        _kind = ReadTargetKind.coerce(kind)
        _tag_sets = convert_tag_sets(tag_sets)
        if _tag_sets:
            self.get_transport().set_read_target(_kind.value, _tag_sets)
        else:
            self.get_transport().set_read_target(_kind.value)

    def get_slave_okay(self) -> bool:
        return ReadTargetTranslator.to_legacy_boolean(self.get_read_target())

    def set_slave_okay(self, ok: bool = True) -> bool:
        """
        Set whether secondary reads are allowed, in the legacy boolean form.
        Tag sets are kept when allowing, dropped when disallowing.

        Returns:
            the previous value of the flag.
        """
        current = self.get_read_target()
        previous = ReadTargetTranslator.to_legacy_boolean(current)
        target = ReadTargetTranslator.set_legacy(current, ok)
        self.set_read_target(target.kind, target.tag_sets)
        return previous

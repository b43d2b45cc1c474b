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

"""
The boundary with the transport collaborator, i.e. the client that actually
speaks the wire protocol. cosmow never talks to the network directly: it
only calls the abstract methods declared here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from cosmow.constants import FilterType, NormalizedSortType, TagSetType


@dataclass(frozen=True)
class TransportCapabilities:
    """
    What a transport is able to do, resolved once by the transport itself
    and handed over to the components that need it.

    Attributes:
        supports_read_targets: whether structured read targets (kind plus
            tag sets) can be set on connections and streams.
        supports_legacy_secondary_ok: whether streams still understand the
            legacy "secondary reads allowed" boolean natively. Only used
            when structured read targets are not supported.
        renames_timeout_options: whether connection options must use the
            "connectTimeoutMS"/"wTimeoutMS" spelling instead of
            "timeout"/"wTimeout".
    """

    supports_read_targets: bool = True
    supports_legacy_secondary_ok: bool = False
    renames_timeout_options: bool = True


class LargeObjectHandle(ABC):
    """
    A large object (file) as returned by the transport in place of a plain
    document. Its `file` attribute holds the stored metadata document.
    """

    file: dict[str, Any]

    @abstractmethod
    def get_bytes(self) -> bytes:
        """Read the whole content of the stored file."""
        ...

    @abstractmethod
    def get_filename(self) -> str | None: ...

    @abstractmethod
    def get_size(self) -> int: ...

    @abstractmethod
    def write(self, filename: str) -> int:
        """Write the stored content to a local path, returning the byte count."""
        ...


class StreamHandle(ABC):
    """
    The live, server-side result stream backing a cursor at a given time.

    A handle may become invalid (dropped connection, cursor reaped on the
    server): when that happens it is discarded and a new one is opened.
    All setters return nothing: a refusal is signaled by raising.
    """

    # Iteration

    @abstractmethod
    def has_next(self) -> bool: ...

    @abstractmethod
    def get_next(self) -> Any:
        """Advance, then return the new current element (None past the end)."""
        ...

    @abstractmethod
    def advance(self) -> None: ...

    @abstractmethod
    def peek(self) -> Any:
        """Return the current element without contacting the server."""
        ...

    @abstractmethod
    def is_exhausted(self) -> bool: ...

    @abstractmethod
    def reset(self) -> None: ...

    @abstractmethod
    def rewind(self) -> None:
        """Go back to the start of the results, executing the query if needed."""
        ...

    # Metadata

    @abstractmethod
    def count(self, found_only: bool = False) -> int: ...

    @abstractmethod
    def explain(self) -> dict[str, Any]: ...

    @abstractmethod
    def position(self) -> int | None:
        """The ordinal position of the current element, if any."""
        ...

    @abstractmethod
    def key(self) -> Any:
        """The identifier of the current element, if any."""
        ...

    @abstractmethod
    def info(self) -> dict[str, Any]: ...

    @abstractmethod
    def get_read_target(self) -> Mapping[str, Any]: ...

    # Options

    @abstractmethod
    def fields(self, projection: dict[str, Any]) -> None: ...

    @abstractmethod
    def hint(self, index_hint: Any) -> None: ...

    @abstractmethod
    def return_key(self, return_key_only: bool) -> None: ...

    @abstractmethod
    def allow_partial_results(self, allow: bool) -> None: ...

    @abstractmethod
    def immortal(self, live_forever: bool) -> None: ...

    @abstractmethod
    def add_option(self, name: str, value: Any) -> None: ...

    @abstractmethod
    def batch_size(self, num: int) -> None: ...

    @abstractmethod
    def limit(self, num: int) -> None: ...

    @abstractmethod
    def skip(self, num: int) -> None: ...

    @abstractmethod
    def slave_okay(self, ok: bool) -> None:
        """Legacy boolean form of read targeting, for old transports only."""
        ...

    @abstractmethod
    def set_read_target(
        self, kind: str, tag_sets: list[TagSetType] | None = None
    ) -> None: ...

    @abstractmethod
    def snapshot(self) -> None: ...

    @abstractmethod
    def sort(self, sort: NormalizedSortType) -> None: ...

    @abstractmethod
    def tailable(self, tail: bool) -> None: ...

    @abstractmethod
    def timeout(self, ms: int) -> None: ...


class Transport(ABC):
    """
    A client connected to a server, able to open result streams.
    """

    @abstractmethod
    def open_stream(
        self,
        *,
        database: str,
        collection: str,
        filter: FilterType,
        projection: dict[str, Any],
    ) -> StreamHandle: ...

    @abstractmethod
    def get_read_target(self) -> Mapping[str, Any]: ...

    @abstractmethod
    def set_read_target(
        self, kind: str, tag_sets: list[TagSetType] | None = None
    ) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class TransportFactory(ABC):
    """
    Creates connected transports. Its `capabilities` describe the transports
    it creates, and are known before any connection is attempted.
    """

    capabilities: TransportCapabilities

    @abstractmethod
    def connect(self, server: str, options: dict[str, Any]) -> Transport:
        """Connect to a server, raising a transient exception on network failures."""
        ...

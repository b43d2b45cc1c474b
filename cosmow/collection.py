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
from copy import deepcopy
from typing import TYPE_CHECKING, Any, Iterable

from cosmow.constants import DocumentType, FilterType, ProjectionType, normalize_projection
from cosmow.cursors import ResilientCursor
from cosmow.read_target import (
    ReadTarget,
    ReadTargetKind,
    ReadTargetTranslator,
    convert_tag_sets,
)
from cosmow.retry import RetryPolicy
from cosmow.settings.defaults import TRACE_LOG_LEVEL
from cosmow.transport import StreamHandle, TransportCapabilities

if TYPE_CHECKING:
    from cosmow.connection import Connection


logger = logging.getLogger(__name__)


class Collection:
    """
    A collection of documents on the server, the source of cursors.

    This class is not meant to be instantiated directly: collections are
    obtained from `Connection.select_collection`.

    Args:
        connection: the connection this collection is reached through.
        database: the name of the database the collection belongs to.
        name: the name of the collection.
        retries: the number of retries, after a transient failure, for opening
            streams and for the operations of the cursors of this collection.

    Example:
        >>> collection = connection.select_collection("shop", "orders")
        >>> collection.find({"paid": False}).count()
        12
    """

    _connection: Connection
    _database: str
    _name: str
    _retry_policy: RetryPolicy
    _read_target: ReadTarget | None

    def __init__(
        self,
        *,
        connection: Connection,
        database: str,
        name: str,
        retries: int | bool = 0,
    ) -> None:
        self._connection = connection
        self._database = database
        self._name = name
        self._retry_policy = RetryPolicy(retries)
        self._read_target = None

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(name="{self._name}", database="{self._database}")'

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Collection):
            return (self._connection, self._database, self._name) == (
                other._connection,
                other._database,
                other._name,
            )
        return False

    def __hash__(self) -> int:
        return hash((id(self._connection), self._database, self._name))

    @property
    def name(self) -> str:
        return self._name

    @property
    def database(self) -> str:
        return self._database

    @property
    def full_name(self) -> str:
        """The fully-qualified name, in the form "database.collection"."""
        return f"{self._database}.{self._name}"

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def capabilities(self) -> TransportCapabilities:
        return self._connection.capabilities

    @property
    def retries(self) -> int:
        return self._retry_policy.retries

    def open_stream(
        self, filter: FilterType | None, projection: dict[str, Any] | None
    ) -> StreamHandle:
        """Open a new result stream for a query, with no other option applied."""
        _filter = filter or {}
        _projection = projection or {}
        logger.log(
            TRACE_LOG_LEVEL,
            f"opening stream on {self.full_name}: filter={_filter}, "
            f"projection={_projection}",
        )
        return self._connection.get_transport().open_stream(
            database=self._database,
            collection=self._name,
            filter=_filter,
            projection=_projection,
        )

    def find(
        self,
        filter: FilterType | None = None,
        projection: ProjectionType | None = None,
    ) -> ResilientCursor:
        """
        Query the collection, returning a cursor over the matching documents.

        Opening the stream is retried according to this collection's retries.
        The read target set on the collection, if any, is applied to the cursor.

        Args:
            filter: a predicate documents must satisfy. Empty means all documents.
            projection: fields to include or exclude, either a dictionary
                (e.g. {"name": True, "_id": False}) or a list of field names
                to include.

        Returns:
            a `ResilientCursor`, not yet consumed.
        """
        _filter = dict(filter or {})
        _projection = normalize_projection(projection)
        self._connection.log(
            {
                "find": True,
                "db": self._database,
                "collection": self._name,
                "query": _filter,
                "fields": _projection,
            }
        )
        handle = self._retry_policy.execute(
            lambda: self.open_stream(_filter, _projection)
        )
        cursor = ResilientCursor(
            collection=self,
            stream_handle=handle,
            filter=_filter,
            projection=_projection,
            retry_policy=self._retry_policy,
            capabilities=self.capabilities,
        )
        if self._read_target is not None:
            cursor.set_read_target(self._read_target.kind, self._read_target.tag_sets)
        return cursor

    def find_one(
        self,
        filter: FilterType | None = None,
        projection: ProjectionType | None = None,
    ) -> DocumentType | None:
        """Return the first document matching the filter, or None if there is none."""
        return self.find(filter, projection).get_single_result()

    def get_read_target(self) -> ReadTarget:
        """
        The read target for queries on this collection: the one set on it,
        if any, otherwise that of the connection.
        """
        if self._read_target is not None:
            return deepcopy(self._read_target)
        return self._connection.get_read_target()

    def set_read_target(
        self,
        kind: ReadTargetKind | str,
        tag_sets: Iterable[Any] | None = None,
    ) -> None:
        self._read_target = ReadTarget(
            kind=ReadTargetKind.coerce(kind),
            tag_sets=convert_tag_sets(tag_sets),
        )

    def get_slave_okay(self) -> bool:
        """Whether secondary reads are allowed, i.e. the read target is not the primary."""
        return ReadTargetTranslator.to_legacy_boolean(self.get_read_target())

    def set_slave_okay(self, ok: bool = True) -> bool:
        """
        Set whether secondary reads are allowed, in the legacy boolean form.

        Returns:
            the previous value of the flag.
        """
        previous = self.get_slave_okay()
        self._read_target = ReadTargetTranslator.set_legacy(self.get_read_target(), ok)
        return previous

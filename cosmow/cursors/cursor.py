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
import weakref
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, TypeVar

import deprecation
from typing_extensions import Self

from cosmow import __version__
from cosmow.constants import (
    DocumentType,
    FilterType,
    NormalizedSortType,
    ProjectionType,
    SortType,
    TagSetType,
)
from cosmow.cursors.records import resolve_record
from cosmow.cursors.snapshot import ConfigurationSnapshot, CursorOption
from cosmow.exceptions import CursorException
from cosmow.read_target import (
    ReadTarget,
    ReadTargetKind,
    ReadTargetTranslator,
    convert_tag_sets,
)
from cosmow.retry import RetryPolicy
from cosmow.settings.defaults import IDENTIFIER_FIELD
from cosmow.transport import StreamHandle, TransportCapabilities

if TYPE_CHECKING:
    from cosmow.collection import Collection
    from cosmow.connection import Connection

R = TypeVar("R")


logger = logging.getLogger(__name__)

GET_CONNECTION_DEPRECATION_NOTICE = (
    "Use cursor.get_collection().connection to reach the connection instead."
)

_END_OF_STREAM = object()


class CursorState(Enum):
    """
    This enum expresses the possible states for a `ResilientCursor`.

    Values:
        CONFIGURING: no read has occurred since creation, last reset or
            last recreate. Options can be set freely.
        ITERATING: reading has started. Options cannot be changed until reset.
        EXHAUSTED: the stream reported it has no further elements.
        INVALIDATED: a transient failure was observed and the stream is to be
            recreated (which `recreate` does, brings back to CONFIGURING).
    """

    CONFIGURING = "configuring"
    ITERATING = "iterating"
    EXHAUSTED = "exhausted"
    INVALIDATED = "invalidated"


def _apply_secondary_ok(
    handle: StreamHandle, ok: bool, capabilities: TransportCapabilities
) -> None:
    if capabilities.supports_read_targets:
        current = ReadTargetTranslator.normalize(handle.get_read_target())
        target = ReadTargetTranslator.set_legacy(current, ok)
        if ok:
            handle.set_read_target(target.kind.value, target.tag_sets)
        else:
            handle.set_read_target(target.kind.value)
    elif capabilities.supports_legacy_secondary_ok:
        handle.slave_okay(ok)
    else:
        logger.debug("transport has no read targeting, ignoring secondary-ok flag")


def apply_option(
    handle: StreamHandle,
    option: CursorOption,
    value: Any,
    capabilities: TransportCapabilities,
) -> None:
    """
    Apply a single (already coerced) option value to a stream handle.

    This is the only place where options reach a handle, both when they are
    set on a live cursor and when they are replayed onto a recreated stream.
    For extra options, `value` is a (name, value) pair.
    """
    if option is CursorOption.PROJECTION:
        handle.fields(value)
    elif option is CursorOption.HINT:
        handle.hint(value)
    elif option is CursorOption.RETURN_KEY_ONLY:
        handle.return_key(value)
    elif option is CursorOption.ALLOW_PARTIAL_RESULTS:
        handle.allow_partial_results(value)
    elif option is CursorOption.IMMORTAL:
        handle.immortal(value)
    elif option is CursorOption.EXTRA_OPTIONS:
        extra_name, extra_value = value
        handle.add_option(extra_name, extra_value)
    elif option is CursorOption.BATCH_SIZE:
        handle.batch_size(value)
    elif option is CursorOption.LIMIT:
        handle.limit(value)
    elif option is CursorOption.SKIP:
        handle.skip(value)
    elif option is CursorOption.SECONDARY_OK:
        _apply_secondary_ok(handle, value, capabilities)
    elif option is CursorOption.READ_TARGET:
        if value.tag_sets:
            handle.set_read_target(value.kind.value, value.tag_sets)
        else:
            handle.set_read_target(value.kind.value)
    elif option is CursorOption.SNAPSHOT:
        if value:
            handle.snapshot()
    elif option is CursorOption.SORT:
        handle.sort(value)
    elif option is CursorOption.TAILABLE:
        handle.tailable(value)
    elif option is CursorOption.TIMEOUT:
        handle.timeout(value)
    else:
        raise ValueError(f"Option '{option.value}' cannot be applied to a stream.")


class ResilientCursor:
    """
    A cursor over the documents resulting from a query on a collection,
    able to survive transient failures of the underlying stream.

    Options are set with chainable methods and recorded in a configuration
    snapshot. Operations that reach the server (`count`, `explain`,
    `has_next`, `get_next`, `advance`, `to_array`, `to_list` and plain
    iteration) run under a retry policy: on a transient failure, the stream is
    discarded, reopened from the collection and configured again from the
    snapshot, then the operation is attempted anew. If all attempts fail, the
    exception from the first attempt is raised.

    Purely local operations (`current`, `dead`, `key`, `info`) and option
    setters are never retried.

    A recreated stream starts over from the first result: elements already
    read before the failure may be returned again.

    This class is not meant to be instantiated directly: cursors are obtained
    from `Collection.find`. A cursor holds only a weak reference to its
    collection, which must be kept alive by the caller for as long as the
    cursor may need to reopen its stream.

    Example:
        >>> cursor = collection.find({"status": "active"}, ["name"])
        >>> cursor.sort({"name": "asc"}).limit(2)
        <cosmow.cursors.cursor.ResilientCursor object at ...>
        >>> for document in cursor:
        ...     print(document)
        ...
        {'_id': 'a1', 'name': 'Alice'}
        {'_id': 'b7', 'name': 'Bob'}
    """

    _collection_ref: weakref.ReferenceType[Collection]
    _handle: StreamHandle
    _snapshot: ConfigurationSnapshot
    _retry_policy: RetryPolicy
    _capabilities: TransportCapabilities
    _use_identifier_keys: bool
    _state: CursorState

    def __init__(
        self,
        *,
        collection: Collection,
        stream_handle: StreamHandle,
        filter: FilterType | None = None,
        projection: ProjectionType | None = None,
        retries: int | bool = 0,
        capabilities: TransportCapabilities | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._collection_ref = weakref.ref(collection)
        self._handle = stream_handle
        self._snapshot = ConfigurationSnapshot()
        self._snapshot.set(CursorOption.FILTER, filter)
        self._snapshot.set(CursorOption.PROJECTION, projection)
        self._retry_policy = (
            retry_policy if retry_policy is not None else RetryPolicy(retries)
        )
        self._capabilities = (
            capabilities if capabilities is not None else TransportCapabilities()
        )
        self._use_identifier_keys = True
        self._state = CursorState.CONFIGURING

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(state={self._state.value}, "
            f"retries={self._retry_policy.retries}, {self._snapshot!r})"
        )

    # State and plumbing

    @property
    def state(self) -> CursorState:
        """
        The current state of this cursor.

        Returns:
            a value in `cosmow.cursors.CursorState`.
        """

        return self._state

    @property
    def retries(self) -> int:
        return self._retry_policy.retries

    @property
    def configuration(self) -> ConfigurationSnapshot:
        """A copy of the options recorded so far on this cursor."""
        return self._snapshot.copy()

    def _ensure_configurable(self) -> None:
        if self._state in (CursorState.ITERATING, CursorState.EXHAUSTED):
            raise CursorException(
                text="Cursor options cannot be changed once reading has started. "
                "Call reset() first.",
                cursor_state=self._state.value,
            )

    def _mark_iterating(self) -> None:
        if self._state != CursorState.EXHAUSTED:
            self._state = CursorState.ITERATING

    def _configure(self, option: CursorOption, value: Any) -> Self:
        self._ensure_configurable()
        stored = self._snapshot.set(option, value)
        apply_option(self._handle, option, stored, self._capabilities)
        return self

    def _recreate_after_failure(self) -> None:
        self._state = CursorState.INVALIDATED
        self.recreate()

    def _guarded(self, operation: Callable[[], R], *, recreate: bool = True) -> R:
        try:
            return self._retry_policy.execute(
                operation,
                recreate=self._recreate_after_failure if recreate else None,
            )
        except Exception as exc:
            if self._retry_policy.is_transient(exc):
                self._state = CursorState.INVALIDATED
            raise

    def get_collection(self) -> Collection:
        """
        Return the collection this cursor was obtained from.

        Raises:
            CursorException: if the collection is no longer referenced anywhere.
        """
        collection = self._collection_ref()
        if collection is None:
            raise CursorException(
                text="The collection this cursor belongs to does not exist anymore.",
                cursor_state=self._state.value,
            )
        return collection

    @deprecation.deprecated(  # type: ignore[misc]
        deprecated_in="1.1.0",
        removed_in="2.0.0",
        current_version=__version__,
        details=GET_CONNECTION_DEPRECATION_NOTICE,
    )
    def get_connection(self) -> Connection:
        """Return the connection of the collection this cursor belongs to."""
        return self.get_collection().connection

    def get_stream_handle(self) -> StreamHandle:
        """Return the stream handle currently backing this cursor."""
        return self._handle

    def recreate(self) -> None:
        """
        Discard the current stream and open a new one from the collection,
        applying to it every option recorded so far.

        The new stream replaces the current one only once fully configured.
        Its results start from the beginning: no attempt is made to skip
        the elements already read from the previous stream.
        """
        collection = self.get_collection()
        logger.info(f"recreating cursor stream on {collection.full_name}")
        new_handle = collection.open_stream(
            self._snapshot.filter, self._snapshot.projection
        )

        def _replay(option: CursorOption, value: Any) -> None:
            logger.debug(f"replaying cursor option '{option.value}'")
            apply_option(new_handle, option, value, self._capabilities)

        self._snapshot.for_each(_replay)
        self._handle = new_handle
        self._state = CursorState.CONFIGURING
        logger.info(f"finished recreating cursor stream on {collection.full_name}")

    def reset(self) -> None:
        """
        Bring the cursor back to its pre-iteration position, keeping its
        configuration. The query will run again upon the next read.

        An invalidated cursor stays invalidated: only `recreate` replaces
        its stream.
        """
        self._handle.reset()
        if self._state != CursorState.INVALIDATED:
            self._state = CursorState.CONFIGURING

    def rewind(self) -> None:
        """
        Go back to the start of the results, running the query right away.
        Transient failures are retried on the same stream.
        """
        self._guarded(self._handle_rewind, recreate=False)
        self._mark_iterating()

    def _handle_rewind(self) -> None:
        self._handle.rewind()

    # Option setters

    def fields(self, projection: ProjectionType) -> Self:
        """Set the projection, i.e. which fields the documents include or exclude."""
        return self._configure(CursorOption.PROJECTION, projection)

    def hint(self, index_hint: Any) -> Self:
        return self._configure(CursorOption.HINT, index_hint)

    def return_key(self, return_key_only: bool = True) -> Self:
        return self._configure(CursorOption.RETURN_KEY_ONLY, return_key_only)

    def allow_partial_results(self, allow: bool = True) -> Self:
        return self._configure(CursorOption.ALLOW_PARTIAL_RESULTS, allow)

    def immortal(self, live_forever: bool = True) -> Self:
        return self._configure(CursorOption.IMMORTAL, live_forever)

    def add_option(self, name: str, value: Any) -> Self:
        """
        Set a free-form server option, not otherwise known to this class.
        Options are replayed in the order they were first added.
        """
        self._ensure_configurable()
        self._snapshot.add_extra_option(name, value)
        apply_option(
            self._handle, CursorOption.EXTRA_OPTIONS, (name, value), self._capabilities
        )
        return self

    def batch_size(self, num: int) -> Self:
        return self._configure(CursorOption.BATCH_SIZE, num)

    def limit(self, num: int) -> Self:
        """Set the maximum number of results. Zero means no limit."""
        return self._configure(CursorOption.LIMIT, num)

    def skip(self, num: int) -> Self:
        return self._configure(CursorOption.SKIP, num)

    def slave_okay(self, ok: bool = True) -> Self:
        """
        Set whether the query may be served by secondaries, in the legacy
        boolean form. Allowing it selects the "secondary-preferred" read
        target, keeping the tag sets already in place; disallowing it
        selects the primary.
        """
        return self._configure(CursorOption.SECONDARY_OK, ok)

    def set_read_target(
        self,
        kind: ReadTargetKind | str,
        tag_sets: Iterable[Any] | None = None,
    ) -> Self:
        """
        Set the read target for this cursor.

        Args:
            kind: a `ReadTargetKind` or its string equivalent.
            tag_sets: an optional list of tag sets (dictionaries, or lists of
                "key:value" strings) constraining the eligible replicas.
        """
        target = ReadTarget(
            kind=ReadTargetKind.coerce(kind),
            tag_sets=convert_tag_sets(tag_sets),
        )
        return self._configure(CursorOption.READ_TARGET, target)

    def snapshot(self) -> Self:
        """Enable snapshot mode. It cannot be disabled afterwards."""
        return self._configure(CursorOption.SNAPSHOT, True)

    def sort(self, sort: SortType) -> Self:
        """
        Set the sort order, as a mapping or sequence of (field, direction) pairs.
        Directions can be numbers, or strings: "asc" (in any case) means
        ascending, any other string descending.
        """
        return self._configure(CursorOption.SORT, sort)

    def tailable(self, tail: bool = True) -> Self:
        return self._configure(CursorOption.TAILABLE, tail)

    def timeout(self, ms: int) -> Self:
        """Set the timeout, in milliseconds, the transport applies to the query."""
        return self._configure(CursorOption.TIMEOUT, ms)

    # Option getters

    def get_query(self) -> FilterType:
        return self._snapshot.filter

    def get_fields(self) -> dict[str, Any]:
        return self._snapshot.projection

    def get_limit(self) -> int | None:
        return self._snapshot.get(CursorOption.LIMIT)

    def get_skip(self) -> int | None:
        return self._snapshot.get(CursorOption.SKIP)

    def get_batch_size(self) -> int | None:
        return self._snapshot.get(CursorOption.BATCH_SIZE)

    def get_sort(self) -> NormalizedSortType | None:
        return self._snapshot.get(CursorOption.SORT)

    def get_hint(self) -> Any:
        return self._snapshot.get(CursorOption.HINT)

    def get_timeout(self) -> int | None:
        return self._snapshot.get(CursorOption.TIMEOUT)

    def get_extra_options(self) -> dict[str, Any]:
        return dict(self._snapshot.get(CursorOption.EXTRA_OPTIONS, {}))

    def get_read_target(self) -> ReadTarget:
        """The read target as currently reported by the stream."""
        return ReadTargetTranslator.normalize(self._handle.get_read_target())

    def get_read_target_tag_sets(self) -> list[TagSetType]:
        return self.get_read_target().tag_sets

    def is_slave_okay(self) -> bool:
        return ReadTargetTranslator.to_legacy_boolean(self.get_read_target())

    def get_use_identifier_keys(self) -> bool:
        """
        Whether the "_id" of documents is used as their key (as opposed to
        their ordinal position) by `key()` and `to_array()`.
        """
        return self._use_identifier_keys

    def set_use_identifier_keys(self, use_identifier_keys: bool) -> Self:
        self._use_identifier_keys = bool(use_identifier_keys)
        return self

    # Reading, guarded

    def count(self, found_only: bool = False) -> int:
        """
        Count the results of the query on the server.

        Args:
            found_only: if True, skip and limit are taken into account.
        """
        return self._guarded(lambda: self._handle.count(found_only))

    def explain(self) -> dict[str, Any]:
        return self._guarded(lambda: self._handle.explain())

    def has_next(self) -> bool:
        result = self._guarded(lambda: self._handle.has_next())
        self._mark_iterating()
        if not result:
            self._state = CursorState.EXHAUSTED
        return result

    def get_next(self) -> DocumentType | None:
        """Advance the cursor and return the new current document, or None."""
        raw = self._guarded(lambda: self._handle.get_next())
        self._mark_iterating()
        if raw is None:
            self._state = CursorState.EXHAUSTED
            return None
        return resolve_record(raw).to_document()

    def advance(self) -> None:
        """Move to the next result without returning it (see `current`)."""
        self._guarded(lambda: self._handle.advance())
        self._mark_iterating()

    def _fetch_next_raw(self) -> Any:
        if not self._handle.has_next():
            return _END_OF_STREAM
        return self._handle.get_next()

    def __iter__(self) -> Self:
        self.reset()
        return self

    def __next__(self) -> DocumentType:
        raw = self._guarded(self._fetch_next_raw)
        self._mark_iterating()
        if raw is _END_OF_STREAM:
            self._state = CursorState.EXHAUSTED
            raise StopIteration
        return resolve_record(raw).to_document()

    def _materialize(self) -> list[DocumentType]:
        self._handle.rewind()
        documents: list[DocumentType] = []
        while self._handle.has_next():
            documents.append(resolve_record(self._handle.get_next()).to_document())
        return documents

    def _materialize_all(self) -> list[DocumentType]:
        # keys are computed afterwards from the documents, never per element
        documents = self._guarded(self._materialize)
        self._state = CursorState.EXHAUSTED
        return documents

    def to_list(self) -> list[DocumentType]:
        """
        Read all results, from the first, into a list.

        The whole reading is retried as one unit: a failure midway
        restarts it from the beginning of a recreated stream.
        """
        return self._materialize_all()

    def to_array(self) -> dict[Any, DocumentType] | list[DocumentType]:
        """
        Read all results, from the first, keyed according to the key mode.

        Returns:
            if identifier keys are in use, a dictionary from each document's
            "_id" to the document (documents lacking "_id" are keyed by their
            position); otherwise, a list of the documents.
        """
        documents = self._materialize_all()
        if not self._use_identifier_keys:
            return documents
        return {
            document.get(IDENTIFIER_FIELD, position): document
            for position, document in enumerate(documents)
        }

    def get_single_result(self) -> DocumentType | None:
        """
        Reset the cursor and return its first result, or None if there is none.

        The cursor is reset before and after reading. Its limit and key mode
        are temporarily changed, and restored before returning.
        """
        limit_was_set = self._snapshot.is_set(CursorOption.LIMIT)
        original_limit = self._snapshot.get(CursorOption.LIMIT)
        original_use_identifier_keys = self._use_identifier_keys

        self.reset()
        self.limit(1)
        self.set_use_identifier_keys(False)
        try:
            documents = self.to_list()
        finally:
            self.reset()
            if limit_was_set:
                self.limit(original_limit)
            else:
                self._snapshot.unset(CursorOption.LIMIT)
                self._handle.limit(0)
            self.set_use_identifier_keys(original_use_identifier_keys)

        return documents[0] if documents else None

    # Reading, local

    def current(self) -> DocumentType | None:
        """The current document, without contacting the server."""
        raw = self._handle.peek()
        if raw is None:
            return None
        return resolve_record(raw).to_document()

    def dead(self) -> bool:
        """Whether the stream has no more results to return."""
        return self._handle.is_exhausted()

    def key(self) -> Any:
        """
        The key of the current document: its "_id" if identifier keys are
        in use, else its ordinal position.
        """
        if self._use_identifier_keys:
            return self._handle.key()
        return self._handle.position()

    def info(self) -> dict[str, Any]:
        return self._handle.info()

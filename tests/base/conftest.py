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
Fixtures and an in-memory transport for the cosmow unit tests.

The fake transport records every call made to the streams it opens and
supports fault injection: `faults[method_name]` is a list of exceptions
(or None, meaning "no failure this time") consumed one per call to that
method, across all streams opened by the transport.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Iterator, Mapping

import pytest
from typing_extensions import override

from cosmow import Collection, Configuration, Connection
from cosmow.constants import NormalizedSortType, TagSetType
from cosmow.transport import (
    LargeObjectHandle,
    StreamHandle,
    Transport,
    TransportCapabilities,
    TransportFactory,
)

FaultMap = dict[str, list[Any]]


def _maybe_fail(faults: FaultMap, name: str) -> None:
    pending = faults.get(name)
    if pending:
        fault = pending.pop(0)
        if fault is not None:
            raise fault


class FakeLargeObject(LargeObjectHandle):
    def __init__(self, file: dict[str, Any], content: bytes) -> None:
        self.file = file
        self.content = content

    @override
    def get_bytes(self) -> bytes:
        return self.content

    @override
    def get_filename(self) -> str | None:
        return self.file.get("filename")

    @override
    def get_size(self) -> int:
        return len(self.content)

    @override
    def write(self, filename: str) -> int:
        with open(filename, "wb") as f_out:
            return f_out.write(self.content)


class FakeStreamHandle(StreamHandle):
    records: list[Any]
    calls: list[tuple[str, tuple[Any, ...]]]
    option_calls: list[tuple[str, tuple[Any, ...]]]

    def __init__(
        self,
        records: list[Any],
        *,
        faults: FaultMap,
        read_target: Mapping[str, Any],
    ) -> None:
        self.records = records
        self.faults = faults
        self.read_target = dict(deepcopy(read_target))
        self.calls = []
        self.option_calls = []
        self.position_ = -1
        self.started = False
        self.limit_ = 0
        self.skip_ = 0

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        _maybe_fail(self.faults, name)

    def _option(self, name: str, *args: Any) -> None:
        self.option_calls.append((name, args))
        self._call(name, *args)

    def _effective(self) -> list[Any]:
        results = self.records[self.skip_ :] if self.skip_ > 0 else self.records
        if self.limit_ > 0:
            return results[: self.limit_]
        return list(results)

    def _current(self) -> Any:
        results = self._effective()
        if 0 <= self.position_ < len(results):
            return results[self.position_]
        return None

    @override
    def has_next(self) -> bool:
        self._call("has_next")
        self.started = True
        return self.position_ + 1 < len(self._effective())

    @override
    def get_next(self) -> Any:
        self._call("get_next")
        self.started = True
        self.position_ = min(self.position_ + 1, len(self._effective()))
        return self._current()

    @override
    def advance(self) -> None:
        self._call("advance")
        self.started = True
        self.position_ = min(self.position_ + 1, len(self._effective()))

    @override
    def peek(self) -> Any:
        self.calls.append(("peek", ()))
        return self._current()

    @override
    def is_exhausted(self) -> bool:
        self.calls.append(("is_exhausted", ()))
        return self.started and self.position_ + 1 >= len(self._effective())

    @override
    def reset(self) -> None:
        self.calls.append(("reset", ()))
        self.position_ = -1
        self.started = False

    @override
    def rewind(self) -> None:
        self._call("rewind")
        self.position_ = -1
        self.started = True

    @override
    def count(self, found_only: bool = False) -> int:
        self._call("count", found_only)
        return len(self._effective()) if found_only else len(self.records)

    @override
    def explain(self) -> dict[str, Any]:
        self._call("explain")
        return {"cursor": "BasicCursor", "n": len(self._effective())}

    @override
    def position(self) -> int | None:
        self.calls.append(("position", ()))
        return self.position_ if self._current() is not None else None

    @override
    def key(self) -> Any:
        self.calls.append(("key", ()))
        current = self._current()
        if isinstance(current, LargeObjectHandle):
            return current.file.get("_id")
        if isinstance(current, dict):
            return current.get("_id")
        return None

    @override
    def info(self) -> dict[str, Any]:
        self.calls.append(("info", ()))
        return {
            "at": self.position(),
            "started_iterating": self.started,
            "limit": self.limit_,
            "skip": self.skip_,
        }

    @override
    def get_read_target(self) -> Mapping[str, Any]:
        self.calls.append(("get_read_target", ()))
        return deepcopy(self.read_target)

    @override
    def fields(self, projection: dict[str, Any]) -> None:
        self._option("fields", projection)

    @override
    def hint(self, index_hint: Any) -> None:
        self._option("hint", index_hint)

    @override
    def return_key(self, return_key_only: bool) -> None:
        self._option("return_key", return_key_only)

    @override
    def allow_partial_results(self, allow: bool) -> None:
        self._option("allow_partial_results", allow)

    @override
    def immortal(self, live_forever: bool) -> None:
        self._option("immortal", live_forever)

    @override
    def add_option(self, name: str, value: Any) -> None:
        self._option("add_option", name, value)

    @override
    def batch_size(self, num: int) -> None:
        self._option("batch_size", num)

    @override
    def limit(self, num: int) -> None:
        self._option("limit", num)
        self.limit_ = num

    @override
    def skip(self, num: int) -> None:
        self._option("skip", num)
        self.skip_ = num

    @override
    def slave_okay(self, ok: bool) -> None:
        self._option("slave_okay", ok)

    @override
    def set_read_target(
        self, kind: str, tag_sets: list[TagSetType] | None = None
    ) -> None:
        if tag_sets is None:
            self._option("set_read_target", kind)
        else:
            self._option("set_read_target", kind, deepcopy(tag_sets))
        self.read_target = {"type": kind, "tagsets": deepcopy(tag_sets or [])}

    @override
    def snapshot(self) -> None:
        self._option("snapshot")

    @override
    def sort(self, sort: NormalizedSortType) -> None:
        self._option("sort", list(sort))

    @override
    def tailable(self, tail: bool) -> None:
        self._option("tailable", tail)

    @override
    def timeout(self, ms: int) -> None:
        self._option("timeout", ms)


class FakeTransport(Transport):
    def __init__(self, factory: FakeTransportFactory) -> None:
        self.factory = factory
        self.read_target: dict[str, Any] = {"type": "primary", "tagsets": []}
        self.closed = False

    @override
    def open_stream(
        self,
        *,
        database: str,
        collection: str,
        filter: dict[str, Any],
        projection: dict[str, Any],
    ) -> StreamHandle:
        self.factory.open_stream_calls.append(
            (database, collection, deepcopy(filter), deepcopy(projection))
        )
        _maybe_fail(self.factory.faults, "open_stream")
        handle = FakeStreamHandle(
            self.factory.records,
            faults=self.factory.faults,
            read_target=self.read_target,
        )
        self.factory.handles.append(handle)
        return handle

    @override
    def get_read_target(self) -> Mapping[str, Any]:
        return deepcopy(self.read_target)

    @override
    def set_read_target(
        self, kind: str, tag_sets: list[TagSetType] | None = None
    ) -> None:
        self.read_target = {"type": kind, "tagsets": deepcopy(tag_sets or [])}

    @override
    def close(self) -> None:
        self.closed = True


class FakeTransportFactory(TransportFactory):
    def __init__(
        self,
        records: list[Any] | None = None,
        *,
        capabilities: TransportCapabilities | None = None,
    ) -> None:
        self.records = records if records is not None else []
        self.capabilities = (
            capabilities if capabilities is not None else TransportCapabilities()
        )
        self.faults: FaultMap = {}
        self.connect_calls: list[tuple[str, dict[str, Any]]] = []
        self.open_stream_calls: list[tuple[str, str, Any, Any]] = []
        self.handles: list[FakeStreamHandle] = []
        self.transports: list[FakeTransport] = []

    @override
    def connect(self, server: str, options: dict[str, Any]) -> Transport:
        self.connect_calls.append((server, dict(options)))
        _maybe_fail(self.faults, "connect")
        transport = FakeTransport(self)
        self.transports.append(transport)
        return transport

    def inject(self, method_name: str, *faults: Any) -> None:
        """Queue failures (or None for a successful call) for a method."""
        self.faults.setdefault(method_name, []).extend(faults)

    def attempts(self, method_name: str) -> int:
        """How many times a method was invoked, across all streams."""
        return sum(
            1 for handle in self.handles for name, _ in handle.calls if name == method_name
        )


SAMPLE_RECORDS = [
    {"_id": "a", "seq": 1},
    {"_id": "b", "seq": 2},
    {"_id": "c", "seq": 3},
]


def make_collection(
    factory: FakeTransportFactory,
    *,
    retries: int = 0,
    database: str = "db",
    name: str = "coll",
) -> Collection:
    connection = Connection(
        configuration=Configuration(retry_query=retries),
        transport_factory=factory,
    )
    return connection.select_collection(database, name)


@pytest.fixture
def transport_factory() -> Iterator[FakeTransportFactory]:
    yield FakeTransportFactory(deepcopy(SAMPLE_RECORDS))


@pytest.fixture
def collection(transport_factory: FakeTransportFactory) -> Iterator[Collection]:
    yield make_collection(transport_factory, retries=2)

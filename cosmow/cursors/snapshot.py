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

from copy import deepcopy
from typing import Any, Callable, Iterator

from cosmow.constants import normalize_projection, normalize_sort
from cosmow.read_target import ReadTarget, ReadTargetTranslator
from cosmow.utils.str_enum import StrEnum


class CursorOption(StrEnum):
    """
    The options a cursor can be configured with. Each of them is recorded in
    the cursor's `ConfigurationSnapshot`.
    """

    FILTER = "filter"
    PROJECTION = "projection"
    HINT = "hint"
    RETURN_KEY_ONLY = "returnKeyOnly"
    ALLOW_PARTIAL_RESULTS = "allowPartialResults"
    IMMORTAL = "immortal"
    EXTRA_OPTIONS = "extraOptions"
    BATCH_SIZE = "batchSize"
    LIMIT = "limit"
    SKIP = "skip"
    SECONDARY_OK = "secondaryOk"
    READ_TARGET = "readTarget"
    SNAPSHOT = "snapshot"
    SORT = "sort"
    TAILABLE = "tailable"
    TIMEOUT = "timeout"


# Order in which options are applied to a freshly opened stream.
# Filter and projection are not in the list: they open the stream.
# The legacy secondary-ok flag precedes the structured read target,
# which is more specific and must not be overridden by it.
REPLAY_ORDER: tuple[CursorOption, ...] = (
    CursorOption.HINT,
    CursorOption.RETURN_KEY_ONLY,
    CursorOption.ALLOW_PARTIAL_RESULTS,
    CursorOption.IMMORTAL,
    CursorOption.EXTRA_OPTIONS,
    CursorOption.BATCH_SIZE,
    CursorOption.LIMIT,
    CursorOption.SKIP,
    CursorOption.SECONDARY_OK,
    CursorOption.READ_TARGET,
    CursorOption.SNAPSHOT,
    CursorOption.SORT,
    CursorOption.TAILABLE,
    CursorOption.TIMEOUT,
)

_INTEGER_OPTIONS = {
    CursorOption.BATCH_SIZE,
    CursorOption.LIMIT,
    CursorOption.SKIP,
    CursorOption.TIMEOUT,
}
_BOOLEAN_OPTIONS = {
    CursorOption.RETURN_KEY_ONLY,
    CursorOption.ALLOW_PARTIAL_RESULTS,
    CursorOption.IMMORTAL,
    CursorOption.SECONDARY_OK,
    CursorOption.SNAPSHOT,
    CursorOption.TAILABLE,
}


def _coerce(option: CursorOption, value: Any) -> Any:
    if option in _INTEGER_OPTIONS:
        return int(value)
    if option in _BOOLEAN_OPTIONS:
        return bool(value)
    if option is CursorOption.SORT:
        return normalize_sort(value)
    if option is CursorOption.PROJECTION:
        return normalize_projection(value)
    if option is CursorOption.FILTER:
        return deepcopy(dict(value or {}))
    if option is CursorOption.READ_TARGET:
        return ReadTargetTranslator.normalize(value)
    if option is CursorOption.EXTRA_OPTIONS:
        return dict(value)
    return value


class ConfigurationSnapshot:
    """
    A record of every option ever set on a cursor, used to configure any new
    stream opened in place of a failed one exactly like the original one.

    Values are coerced to their type on the way in (integers for limit, skip,
    batch size and timeout; booleans for the flags; normalized forms for sort,
    projection and read target) but are otherwise not validated: a negative
    limit is stored and replayed as such, and it is up to the server to
    interpret or reject it.

    Options never set are absent from the snapshot, which is different from
    being set to a falsy value: for instance an explicit limit of zero is
    replayed, while an unset limit is not.
    """

    _values: dict[CursorOption, Any]

    def __init__(self) -> None:
        self._values = {}

    def __repr__(self) -> str:
        _desc = ", ".join(f"{opt.value}={val!r}" for opt, val in self._values.items())
        return f"{self.__class__.__name__}({_desc})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ConfigurationSnapshot):
            return self._values == other._values
        return NotImplemented

    def set(self, option: CursorOption | str, value: Any) -> Any:
        """
        Store a value for an option, replacing any previous value.

        Returns:
            the value as coerced and stored.
        """
        _option = CursorOption.coerce(option)
        coerced = _coerce(_option, value)
        self._values[_option] = coerced
        return coerced

    def add_extra_option(self, name: str, value: Any) -> None:
        """Add (or replace, keeping its position) a free-form server option."""
        extra = self._values.setdefault(CursorOption.EXTRA_OPTIONS, {})
        extra[name] = value

    def get(self, option: CursorOption | str, default: Any = None) -> Any:
        """Return a copy of the stored value: edits to it are not recorded."""
        return deepcopy(self._values.get(CursorOption.coerce(option), default))

    def is_set(self, option: CursorOption | str) -> bool:
        return CursorOption.coerce(option) in self._values

    def unset(self, option: CursorOption | str) -> None:
        self._values.pop(CursorOption.coerce(option), None)

    @property
    def filter(self) -> dict[str, Any]:
        return deepcopy(self._values.get(CursorOption.FILTER) or {})

    @property
    def projection(self) -> dict[str, Any]:
        return deepcopy(self._values.get(CursorOption.PROJECTION) or {})

    @property
    def read_target(self) -> ReadTarget | None:
        return deepcopy(self._values.get(CursorOption.READ_TARGET))

    def replay_items(self) -> Iterator[tuple[CursorOption, Any]]:
        """
        Yield the (option, value) pairs to apply to a freshly opened stream,
        in replay order.

        Unset options are skipped. Extra options yield one pair each, in
        insertion order, the value being a (name, value) tuple. Snapshot mode
        is yielded only if enabled, as it cannot be switched off.
        """
        for option in REPLAY_ORDER:
            if option not in self._values:
                continue
            value = self._values[option]
            if option is CursorOption.EXTRA_OPTIONS:
                for extra_item in value.items():
                    yield (option, extra_item)
            elif option is CursorOption.SNAPSHOT:
                if value:
                    yield (option, value)
            else:
                yield (option, value)

    def for_each(self, apply: Callable[[CursorOption, Any], None]) -> None:
        """Invoke `apply(option, value)` for each pair of `replay_items`."""
        for option, value in self.replay_items():
            apply(option, value)

    def copy(self) -> ConfigurationSnapshot:
        other = ConfigurationSnapshot()
        other._values = deepcopy(self._values)
        return other

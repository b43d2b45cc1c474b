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

import re
from enum import Enum, EnumMeta
from typing import TypeVar

T = TypeVar("T", bound="StrEnum")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _fold(value: str) -> str:
    """Reduce a name to a comparison key: 'secondaryPreferred' -> 'SECONDARY_PREFERRED'."""
    return _CAMEL_BOUNDARY.sub("_", value).replace("-", "_").upper()


class StrEnumMeta(EnumMeta):
    def _name_lookup(cls, value: str) -> str | None:
        """Return a proper key in the enum if some matching logic works, or None."""
        mmap = {k: v.value for k, v in cls._member_map_.items()}
        # try exact key match
        if value in mmap:
            return value
        f_value = _fold(value)
        # try folded key match
        f_mmap = {_fold(k): k for k in mmap.keys()}
        if f_value in f_mmap:
            return f_mmap[f_value]
        # try folded *value* match
        v_mmap = {_fold(v): k for k, v in mmap.items()}
        if f_value in v_mmap:
            return v_mmap[f_value]
        return None

    def __contains__(cls, value: object) -> bool:
        """Return True if the provided string belongs to the enum."""
        if isinstance(value, str):
            return cls._name_lookup(value) is not None
        return isinstance(value, cls)


class StrEnum(Enum, metaclass=StrEnumMeta):
    @classmethod
    def coerce(cls: type[T], value: str | T) -> T:
        """
        Accepts either a string or an instance of the Enum itself.
        Strings are matched against member names and values regardless of
        case, dashes versus underscores and camelCase spelling, so that
        "secondaryPreferred", "secondary-preferred" and "SECONDARY_PREFERRED"
        all resolve to the same member.
        Raises ValueError if the string does not match any enum member.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            norm_value = cls._name_lookup(value)
            if norm_value is not None:
                return cls[norm_value]
        raise ValueError(
            f"Invalid value '{value}' for {cls.__name__}. "
            f"Allowed values are: {[e.value for e in cls]}"
        )

    def __str__(self) -> str:
        return str(self.value)

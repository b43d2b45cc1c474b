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

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from cosmow.utils.str_enum import StrEnum

DocumentType = Dict[str, Any]
FilterType = Dict[str, Any]
ProjectionType = Union[Iterable[str], Dict[str, Any]]
SortType = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]
NormalizedSortType = List[Tuple[str, int]]
TagSetType = Dict[str, str]


class SortDirection(StrEnum):
    """
    Admitted directions for a sort clause. The integer value of each member
    is what the transport receives.
    """

    ASCENDING = "asc"
    DESCENDING = "desc"

    @property
    def numeric(self) -> int:
        return 1 if self is SortDirection.ASCENDING else -1


def normalize_projection(projection: ProjectionType | None) -> dict[str, Any]:
    if projection:
        if isinstance(projection, dict):
            # already a dictionary
            return dict(projection)
        else:
            # an iterable over strings: coerce to allow-list projection
            return {field: True for field in projection}
    else:
        return {}


def _normalize_direction(direction: Any) -> Any:
    if isinstance(direction, SortDirection):
        return direction.numeric
    if isinstance(direction, str):
        return 1 if direction.lower() == SortDirection.ASCENDING.value else -1
    if isinstance(direction, (int, float)):
        return int(direction)
    # non-scalar directions (e.g. {"$meta": "textScore"}) pass through
    return direction


def normalize_sort(sort: SortType | None) -> NormalizedSortType:
    """
    Turn a sort specification into an ordered list of (field, direction) pairs.

    Either a mapping or a sequence of pairs is accepted. String directions
    count as ascending if they read "asc" (in any case) and as descending
    otherwise; numeric directions are made integers.
    """
    if not sort:
        return []
    pairs = sort.items() if isinstance(sort, Mapping) else sort
    return [(field, _normalize_direction(direction)) for field, direction in pairs]

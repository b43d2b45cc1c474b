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

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from cosmow.constants import TagSetType
from cosmow.utils.str_enum import StrEnum


class ReadTargetKind(StrEnum):
    """
    Which replicas a read may be served from.

    Values:
        PRIMARY: the primary only.
        PRIMARY_PREFERRED: the primary if available, else a secondary.
        SECONDARY: secondaries only.
        SECONDARY_PREFERRED: a secondary if available, else the primary.
        NEAREST: the member with the lowest latency, whatever its role.
    """

    PRIMARY = "primary"
    PRIMARY_PREFERRED = "primary-preferred"
    SECONDARY = "secondary"
    SECONDARY_PREFERRED = "secondary-preferred"
    NEAREST = "nearest"


# Older transports report the kind as a numeric code
_KIND_CODES = {
    0: ReadTargetKind.PRIMARY,
    1: ReadTargetKind.PRIMARY_PREFERRED,
    2: ReadTargetKind.SECONDARY,
    3: ReadTargetKind.SECONDARY_PREFERRED,
    4: ReadTargetKind.NEAREST,
}


def convert_tag_sets(tag_sets: Iterable[Any] | None) -> list[TagSetType]:
    """
    Convert tag sets to the list-of-dictionaries form.

    Each tag set may either be a mapping already, or an iterable of
    "key:value" strings (as some transports report them), for instance
    ["dc:east", "use:reporting"] becomes {"dc": "east", "use": "reporting"}.
    A string without a colon becomes a key with an empty value.
    """
    if not tag_sets:
        return []
    converted: list[TagSetType] = []
    for tag_set in tag_sets:
        if isinstance(tag_set, Mapping):
            converted.append({str(k): str(v) for k, v in tag_set.items()})
        else:
            c_tag_set: TagSetType = {}
            for tag in tag_set:
                t_key, _, t_value = str(tag).partition(":")
                c_tag_set[t_key] = t_value
            converted.append(c_tag_set)
    return converted


@dataclass
class ReadTarget:
    """
    A structured read target: a replica kind plus optional tag sets
    constraining which members qualify.

    Attributes:
        kind: a `ReadTargetKind`.
        tag_sets: a list of tag sets, each a dictionary of tag names to values.
            Tag sets are tried in order. An empty list means "no constraint".
    """

    kind: ReadTargetKind
    tag_sets: list[TagSetType] = field(default_factory=list)

    def __repr__(self) -> str:
        if self.tag_sets:
            return f"{self.__class__.__name__}({self.kind.value}, {self.tag_sets})"
        return f"{self.__class__.__name__}({self.kind.value})"

    def as_dict(self) -> dict[str, Any]:
        """The form in which transports expect and report read targets."""
        return {
            "type": self.kind.value,
            "tagsets": [dict(tag_set) for tag_set in self.tag_sets],
        }


class ReadTargetTranslator:
    """
    Conversions between the legacy "allow secondary reads" boolean and the
    structured `ReadTarget` representation.

    Collections, connections and cursors all go through this class, so that
    the legacy flag behaves the same way wherever it is set.
    """

    @staticmethod
    def normalize(raw: ReadTarget | str | Mapping[str, Any] | None) -> ReadTarget:
        """
        Turn whatever a transport reports into a `ReadTarget`.

        Args:
            raw: a ReadTarget (returned as is), a kind name, or a mapping
                with a "type" (name or numeric code) and an optional
                "tagsets" entry. None stands for the primary.
        """
        if raw is None:
            return ReadTarget(kind=ReadTargetKind.PRIMARY)
        if isinstance(raw, ReadTarget):
            return raw
        if isinstance(raw, (str, ReadTargetKind)):
            return ReadTarget(kind=ReadTargetKind.coerce(raw))
        raw_kind = raw.get("type", ReadTargetKind.PRIMARY)
        if isinstance(raw_kind, int) and not isinstance(raw_kind, bool):
            if raw_kind not in _KIND_CODES:
                raise ValueError(f"Unknown read target code: {raw_kind}")
            kind = _KIND_CODES[raw_kind]
        else:
            kind = ReadTargetKind.coerce(raw_kind)
        return ReadTarget(kind=kind, tag_sets=convert_tag_sets(raw.get("tagsets")))

    @staticmethod
    def set_legacy(current: ReadTarget | None, allow: bool) -> ReadTarget:
        """
        Compute the read target corresponding to setting the legacy flag.

        Allowing secondary reads moves to "secondary-preferred", keeping any
        tag sets the current target has; disallowing them goes back to the
        primary, with no tag sets.
        """
        if allow:
            tag_sets = list(current.tag_sets) if current is not None else []
            return ReadTarget(kind=ReadTargetKind.SECONDARY_PREFERRED, tag_sets=tag_sets)
        return ReadTarget(kind=ReadTargetKind.PRIMARY)

    @staticmethod
    def to_legacy_boolean(target: ReadTarget | None) -> bool:
        """Any target other than the primary counts as "secondary reads allowed"."""
        if target is None:
            return False
        return target.kind is not ReadTargetKind.PRIMARY

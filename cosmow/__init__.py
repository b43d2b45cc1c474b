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

import importlib.metadata

from cosmow._version import __version__ as _FALLBACK_VERSION


def get_version() -> str:
    try:
        # the installed distribution metadata is authoritative when present
        return importlib.metadata.version(__package__)

    # Running from a source checkout: use the version pinned in the package
    except importlib.metadata.PackageNotFoundError:
        return _FALLBACK_VERSION


__version__: str = get_version()


import cosmow.constants  # noqa: E402
import cosmow.cursors  # noqa: F401, E402
from cosmow.collection import Collection  # noqa: E402
from cosmow.configuration import Configuration, ConfigurationOverride  # noqa: E402
from cosmow.connection import Connection  # noqa: E402
from cosmow.cursors import CursorState, ResilientCursor  # noqa: E402
from cosmow.read_target import (  # noqa: E402
    ReadTarget,
    ReadTargetKind,
    ReadTargetTranslator,
)
from cosmow.retry import RetryPolicy  # noqa: E402

__all__ = [
    "Collection",
    "Configuration",
    "ConfigurationOverride",
    "Connection",
    "CursorState",
    "ReadTarget",
    "ReadTargetKind",
    "ReadTargetTranslator",
    "ResilientCursor",
    "RetryPolicy",
    "__version__",
]

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

# Defaults/settings for Connection management
DEFAULT_SERVER = "http://localhost:8098"
DEFAULT_RETRY_CONNECT = 0
DEFAULT_RETRY_QUERY = 0

# Connection option names and their canonical (newer transport) counterparts
LEGACY_CONNECT_TIMEOUT_OPTION = "timeout"
CONNECT_TIMEOUT_OPTION = "connectTimeoutMS"
LEGACY_WRITE_TIMEOUT_OPTION = "wTimeout"
WRITE_TIMEOUT_OPTION = "wTimeoutMS"

# Reserved document fields
IDENTIFIER_FIELD = "_id"
LARGE_OBJECT_FILE_FIELD = "file"

# Custom logging level, below DEBUG
TRACE_LOG_LEVEL = 5

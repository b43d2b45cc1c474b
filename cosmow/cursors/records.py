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

import os
import shutil
from dataclasses import dataclass
from typing import Any, Union

from cosmow.constants import DocumentType
from cosmow.exceptions import LargeObjectException
from cosmow.settings.defaults import LARGE_OBJECT_FILE_FIELD
from cosmow.transport import LargeObjectHandle


class LargeObjectFile:
    """
    A file value, either backed by a large object stored on the server or
    pending persistence (from a local path or from in-memory bytes).

    A file is "dirty" when it has content that still needs to be persisted.
    Files wrapping a stored large object start clean; files created from a
    path, or whose bytes or filename are set, are dirty.

    Example:
        >>> document = cursor.get_next()
        >>> document["file"].filename
        'report.pdf'
        >>> document["file"].write("/tmp/report.pdf")
        48213
    """

    _handle: LargeObjectHandle | None
    _filename: str | None
    _bytes: bytes | None
    _is_dirty: bool

    def __init__(self, file: LargeObjectHandle | str | None = None) -> None:
        self._handle = None
        self._filename = None
        self._bytes = None
        self._is_dirty = False
        if isinstance(file, LargeObjectHandle):
            self._handle = file
        elif isinstance(file, str):
            self._filename = file
            self._is_dirty = True

    def __repr__(self) -> str:
        _dirty = ", dirty" if self._is_dirty else ""
        return f'{self.__class__.__name__}("{self.filename}"{_dirty})'

    @property
    def handle(self) -> LargeObjectHandle | None:
        return self._handle

    def set_handle(self, handle: LargeObjectHandle) -> None:
        """Wrap a stored large object, marking the file as clean."""
        self._handle = handle
        self._is_dirty = False

    def get_bytes(self) -> bytes | None:
        if self._is_dirty and self._bytes:
            return self._bytes
        if self._is_dirty and self._filename:
            with open(self._filename, "rb") as f_in:
                return f_in.read()
        if self._handle is not None:
            return self._handle.get_bytes()
        return None

    def set_bytes(self, content: bytes) -> None:
        self._bytes = content
        self._is_dirty = True

    @property
    def filename(self) -> str | None:
        if self._is_dirty and self._filename:
            return self._filename
        if self._handle is not None:
            stored_filename = self._handle.get_filename()
            if stored_filename:
                return stored_filename
        return self._filename

    @filename.setter
    def filename(self, filename: str) -> None:
        self._filename = filename
        self._is_dirty = True

    @property
    def size(self) -> int:
        if self._is_dirty and self._bytes:
            return len(self._bytes)
        if self._is_dirty and self._filename:
            return os.path.getsize(self._filename)
        if self._handle is not None:
            return self._handle.get_size()
        return 0

    def has_unpersisted_bytes(self) -> bool:
        return bool(self._is_dirty and self._bytes)

    def has_unpersisted_file(self) -> bool:
        return bool(self._is_dirty and self._filename)

    def is_dirty(self, is_dirty: bool | None = None) -> bool:
        """
        Return whether the file is dirty, optionally setting the flag first.

        Args:
            is_dirty: if not None, the new value of the dirty flag.
        """
        if is_dirty is not None:
            self._is_dirty = bool(is_dirty)
        return self._is_dirty

    def write(self, filename: str) -> int:
        """
        Write the content of this file to a local path.

        Pending bytes take precedence over a pending local file, which in turn
        takes precedence over the stored large object.

        Returns:
            the number of bytes written.

        Raises:
            LargeObjectException: if there is nothing to write, i.e. the file
                is neither dirty nor backed by a stored large object.
        """
        if self._is_dirty and self._bytes:
            with open(filename, "wb") as f_out:
                return f_out.write(self._bytes)
        if self._is_dirty and self._filename:
            shutil.copyfile(self._filename, filename)
            return os.path.getsize(filename)
        if self._handle is not None:
            return self._handle.write(filename)
        raise LargeObjectException(
            "Nothing to write: the file is not persisted yet and is not dirty.",
            filename=filename,
        )


@dataclass
class PlainRecord:
    """A document returned inline by the transport."""

    document: DocumentType

    def to_document(self) -> DocumentType:
        return self.document


@dataclass
class LargeObjectRecord:
    """
    A large object returned by the transport: its document is the stored
    file metadata, with the file itself under the reserved "file" field.
    """

    handle: LargeObjectHandle

    def to_document(self) -> DocumentType:
        document = dict(self.handle.file)
        document[LARGE_OBJECT_FILE_FIELD] = LargeObjectFile(self.handle)
        return document


Record = Union[PlainRecord, LargeObjectRecord]


def resolve_record(raw: Any) -> Record:
    """Classify a raw element received from the transport."""
    if isinstance(raw, LargeObjectHandle):
        return LargeObjectRecord(handle=raw)
    return PlainRecord(document=raw)

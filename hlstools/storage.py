"""Storage behind init files, segments and parts, kept in memory or on disk."""

from __future__ import annotations

import io
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO


class StorageError(Exception):
    """Raised when a storage operation cannot be carried out."""


class Part(ABC):
    """The storage of a single HLS part."""

    @abstractmethod
    def writer(self) -> BinaryIO:
        """Return a seekable writer of the part."""

    @abstractmethod
    def reader(self) -> BinaryIO:
        """Return a reader of the part; close it when done."""


class File(ABC):
    """The storage of a file made of consecutive parts."""

    @abstractmethod
    def finalize(self) -> None:
        """Make the file read-only."""

    @abstractmethod
    def remove(self) -> None:
        """Delete the file."""

    @abstractmethod
    def new_part(self) -> Part:
        """Append a new part to the file."""

    @abstractmethod
    def reader(self) -> BinaryIO:
        """Return a reader of the whole file; the file must be finalized."""

    @abstractmethod
    def size(self) -> int:
        """Return the size of the file once finalized."""


class Factory(ABC):
    """Allocates the storage behind files."""

    @abstractmethod
    def new_file(self, file_name: str) -> File:
        """Allocate a file."""


_NOT_FINALIZED = "file has not been finalized yet"


class RAMPart(Part):
    """A part held in memory."""

    def __init__(self) -> None:
        self._buffer = io.BytesIO()

    @property
    def data(self) -> bytes:
        """Current content of the part."""
        return self._buffer.getvalue()

    def writer(self) -> BinaryIO:
        return self._buffer

    def reader(self) -> BinaryIO:
        return io.BytesIO(self._buffer.getvalue())


class _RAMFileReader(io.RawIOBase):
    """Reads the parts of a RAM file one after the other."""

    def __init__(self, parts: list[RAMPart]) -> None:
        super().__init__()
        self._parts = parts
        self._part_index = 0
        self._pos = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:  # type: ignore[override]
        out = memoryview(b).cast("B")
        written = 0
        while written < len(out) and self._part_index < len(self._parts):
            data = self._parts[self._part_index].data
            chunk = data[self._pos:self._pos + len(out) - written]
            out[written:written + len(chunk)] = chunk
            written += len(chunk)
            self._pos += len(chunk)
            if self._pos >= len(data):
                self._part_index += 1
                self._pos = 0
        return written


class RAMFile(File):
    """A file held in memory."""

    def __init__(self) -> None:
        self._finalized = False
        self._parts: list[RAMPart] = []
        self._final_size = 0

    def finalize(self) -> None:
        self._finalized = True
        self._final_size += sum(len(part.data) for part in self._parts)

    def remove(self) -> None:
        pass

    def new_part(self) -> RAMPart:
        part = RAMPart()
        self._parts.append(part)
        return part

    def reader(self) -> BinaryIO:
        if not self._finalized:
            raise StorageError(_NOT_FINALIZED)
        return io.BufferedReader(_RAMFileReader(list(self._parts)))

    def size(self) -> int:
        return self._final_size


class _DiskPartWriter:
    """Writes a part both to its place in the disk file and to a memory buffer."""

    def __init__(self, file: BinaryIO, base: int, buffer: io.BytesIO) -> None:
        self._file = file
        self._base = base
        self._offset = base
        self._buffer = buffer

    def write(self, data: bytes) -> int:
        self._file.seek(self._offset)
        n = self._file.write(data)
        self._offset += n
        return self._buffer.write(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            target = offset + self._base
        elif whence == io.SEEK_CUR:
            target = offset + self._offset
        else:
            raise StorageError("Seek: invalid whence")
        if target < self._base:
            raise StorageError("Seek: invalid offset")
        self._offset = target
        return self._buffer.seek(offset, whence)


class _DiskPartReader(io.RawIOBase):
    """Reads at most ``size`` bytes of a disk file, starting at ``offset``."""

    def __init__(self, path: Path, offset: int, size: int) -> None:
        super().__init__()
        self._file = open(path, "rb")
        try:
            self._file.seek(offset)
        except OSError:
            self._file.close()
            raise
        self._remaining = size

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:  # type: ignore[override]
        if self._remaining <= 0:
            return 0
        out = memoryview(b).cast("B")
        data = self._file.read(min(len(out), self._remaining))
        out[:len(data)] = data
        self._remaining -= len(data)
        return len(data)

    def close(self) -> None:
        if not self.closed:
            self._file.close()
        super().close()


class DiskPart(Part):
    """A part stored on disk, mirrored in memory until its file is finalized."""

    def __init__(self, file: DiskFile, offset: int) -> None:
        self._file = file
        self._buffer: io.BytesIO | None = io.BytesIO()
        self.offset = offset
        self.size = 0

    def _buffered_size(self) -> int:
        return len(self._buffer.getvalue()) if self._buffer is not None else self.size

    def _drop_buffer(self) -> None:
        self._buffer = None

    def writer(self) -> _DiskPartWriter:
        if self._buffer is None or self._file._handle is None:
            raise StorageError("file has been finalized")
        return _DiskPartWriter(self._file._handle, self.offset, self._buffer)

    def reader(self) -> BinaryIO:
        if self._buffer is not None:
            return io.BytesIO(self._buffer.getvalue())
        return io.BufferedReader(_DiskPartReader(self._file.path, self.offset, self.size))


class DiskFile(File):
    """A file stored on disk."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._handle: BinaryIO | None = open(self.path, "w+b")
        self._parts: list[DiskPart] = []
        self._final_size = 0

    def _close_last_part(self) -> int:
        if not self._parts:
            return 0
        last = self._parts[-1]
        last.size = last._buffered_size()
        return last.offset + last.size

    def finalize(self) -> None:
        if self._parts:
            self._final_size = self._close_last_part()
        for part in self._parts:
            part._drop_buffer()
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def remove(self) -> None:
        try:
            self.path.unlink()
        except OSError:
            pass

    def new_part(self) -> DiskPart:
        part = DiskPart(self, self._close_last_part())
        self._parts.append(part)
        return part

    def reader(self) -> BinaryIO:
        if self._handle is not None:
            raise StorageError(_NOT_FINALIZED)
        return open(self.path, "rb")

    def size(self) -> int:
        return self._final_size


class RAMFactory(Factory):
    """Allocates files held in memory."""

    def new_file(self, file_name: str) -> RAMFile:
        return RAMFile()


class DiskFactory(Factory):
    """Allocates files inside a directory."""

    def __init__(self, dir_path: str | os.PathLike[str]) -> None:
        self.dir_path = Path(dir_path)

    def new_file(self, file_name: str) -> DiskFile:
        return DiskFile(self.dir_path / file_name)
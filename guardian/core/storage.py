"""Content-addressed object storage for Guardian.

Writes go through two phases. stage_object() serializes and hashes an
object and works out where it would live, without touching the disk.
commit_staged_object() then makes it durable with a temp-file + rename,
so a reader never sees a partially written object under its final name.
"""

import logging
import zlib
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from guardian.utils.fs import atomic_write

from .errors import CorruptObject, InvalidArgument, NotFound, StorageError
from .hash import Hasher, Sha256Hasher
from .objects import Commit, PgObject, deserialize_object, is_object_id, serialize_object

logger = logging.getLogger(__name__)

# First byte of a zlib stream at any compression level. Uncompressed
# objects start with their type name, which never begins with 'x'.
_ZLIB_MAGIC = 0x78


@dataclass(frozen=True)
class StagedObjectWrite:
    """
    A serialized and hashed object that has not been written yet.

    payload is exactly what commit_staged_object() will put on disk.
    """

    object_id: str
    target_path: Path
    payload: bytes
    exists_already: bool


class BaseObjectStore(ABC):
    """Interface shared by object store backends."""

    @property
    @abstractmethod
    def hasher(self) -> Hasher:
        pass

    @abstractmethod
    def stage_object(self, obj: PgObject) -> StagedObjectWrite:
        pass

    @abstractmethod
    def commit_staged_object(self, staged: StagedObjectWrite) -> str:
        pass

    @abstractmethod
    def read_object(self, oid: str) -> PgObject:
        pass

    @abstractmethod
    def contains(self, oid: str) -> bool:
        pass

    @abstractmethod
    def iter_object_ids(self) -> Iterator[str]:
        pass

    def commit_staged_objects(self, staged: Iterable[StagedObjectWrite]) -> List[str]:
        """
        Commit a batch of staged writes in order.

        Returns:
            List of object ids, one per staged write
        """
        return [self.commit_staged_object(item) for item in staged]

    def write_object(self, obj: PgObject) -> Tuple[str, bytes]:
        """
        Stage and commit an object.

        Returns:
            Tuple of (object id, bytes written)
        """
        staged = self.stage_object(obj)
        return self.commit_staged_object(staged), staged.payload

    def find_by_prefix(self, prefix: str) -> List[str]:
        """Return all stored ids starting with prefix."""
        prefix = prefix.lower()
        return sorted(oid for oid in self.iter_object_ids() if oid.startswith(prefix))


class ObjectStore(BaseObjectStore):
    """
    File object storage.

    Objects are stored in subdirectories named by the first 2 characters
    of the id, with the remaining characters as the filename.
    Example: ab/cdef0123... for id abcdef0123...
    """

    def __init__(self, objects_dir, hasher: Optional[Hasher] = None, compress: bool = False):
        """
        Initialize object store.

        Args:
            objects_dir: Root objects directory
            hasher: Digest function (defaults to SHA-256)
            compress: Store new objects zlib-compressed
        """
        self.objects_dir = Path(objects_dir)
        self._hasher = hasher or Sha256Hasher()
        self.compress = compress

    @property
    def hasher(self) -> Hasher:
        return self._hasher

    def _check_id(self, oid) -> str:
        if not is_object_id(oid) or len(oid) != 2 * self._hasher.digest_size:
            raise InvalidArgument(f"Invalid object id: {oid!r}")
        return oid

    def object_path(self, oid: str) -> Path:
        """
        Get filesystem path for an object.

        Args:
            oid: Hex object id

        Returns:
            Path: Full path to object file
        """
        oid = self._check_id(oid)
        return self.objects_dir / oid[:2] / oid[2:]

    def _check_parent(self, parent_id: str) -> None:
        try:
            parent = self.read_object(parent_id)
        except NotFound:
            raise InvalidArgument(f"Commit parent not found: {parent_id}") from None
        if not isinstance(parent, Commit):
            raise InvalidArgument(f"Commit parent {parent_id} is a {parent.type}, not a commit")

    def stage_object(self, obj: PgObject) -> StagedObjectWrite:
        """
        Serialize and hash an object without writing it.

        Args:
            obj: Object to stage

        Returns:
            StagedObjectWrite describing the pending write

        Raises:
            InvalidArgument: If obj is not an object, references malformed
                ids, or is a commit whose parents are not stored commits
        """
        if not isinstance(obj, PgObject):
            raise InvalidArgument(f"Cannot stage {type(obj).__name__}, expected a Guardian object")

        for ref_id in obj.referenced_ids():
            self._check_id(ref_id)
        if isinstance(obj, Commit):
            for parent_id in obj.parents:
                self._check_parent(parent_id)

        data = serialize_object(obj)
        oid = self._hasher.hex_digest(data)
        path = self.object_path(oid)
        payload = zlib.compress(data) if self.compress else data

        return StagedObjectWrite(
            object_id=oid,
            target_path=path,
            payload=payload,
            exists_already=path.exists(),
        )

    def commit_staged_object(self, staged: StagedObjectWrite) -> str:
        """
        Durably write a staged object.

        A no-op if the object is already stored. Otherwise the payload is
        written to a temporary file in the bucket and renamed into place.

        Raises:
            StorageError: If the write fails; nothing is retried
        """
        if not isinstance(staged, StagedObjectWrite):
            raise InvalidArgument("Expected a StagedObjectWrite")
        if staged.exists_already or staged.target_path.exists():
            return staged.object_id

        try:
            staged.target_path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(staged.target_path, staged.payload)
        except OSError as exc:
            raise StorageError(f"Failed to write object {staged.object_id}: {exc}") from exc

        logger.debug("Wrote object %s (%d bytes)", staged.object_id, len(staged.payload))
        return staged.object_id

    def read_object(self, oid: str) -> PgObject:
        """
        Read object from storage.

        Args:
            oid: Hex object id

        Returns:
            PgObject: Deserialized object (Blob, Tree, or Commit)

        Raises:
            InvalidArgument: If oid is malformed
            NotFound: If object is not stored
            CorruptObject: If stored bytes fail to parse or verify
            StorageError: If the file cannot be read
        """
        path = self.object_path(oid)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise NotFound(f"Object {oid} not found") from None
        except OSError as exc:
            raise StorageError(f"Failed to read object {oid}: {exc}") from exc

        if raw[:1] == bytes([_ZLIB_MAGIC]):
            try:
                raw = zlib.decompress(raw)
            except zlib.error as exc:
                raise CorruptObject(f"Object {oid} failed to decompress: {exc}") from exc

        try:
            obj = deserialize_object(raw, self._hasher.digest_size)
        except CorruptObject as exc:
            raise CorruptObject(f"Object {oid}: {exc}") from exc

        if self._hasher.hex_digest(raw) != oid:
            raise CorruptObject(f"Object integrity check failed for {oid}")
        return obj

    def contains(self, oid: str) -> bool:
        """
        Check if object exists in storage.

        Malformed ids are simply not present.
        """
        try:
            return self.object_path(oid).is_file()
        except InvalidArgument:
            return False

    def iter_object_ids(self) -> Iterator[str]:
        """Yield ids of all stored objects."""
        if not self.objects_dir.is_dir():
            return
        for bucket in sorted(self.objects_dir.iterdir()):
            if not bucket.is_dir() or len(bucket.name) != 2:
                continue
            for leaf in sorted(bucket.iterdir()):
                oid = bucket.name + leaf.name
                if leaf.is_file() and is_object_id(oid):
                    yield oid

    def __repr__(self) -> str:
        return f"ObjectStore(path={self.objects_dir}, hasher={self._hasher.name})"


class CachedObjectStore(BaseObjectStore):
    """
    Wraps a store with a bounded LRU of serialized objects.

    Staging is delegated unchanged; objects are cached on read and on
    commit so repeated history walks do not hit the disk. The cache holds
    bytes and every hit parses a fresh object, so callers mutating what
    they wrote or read never change what later reads return.
    """

    def __init__(self, inner: BaseObjectStore, max_size: int = 5000):
        if max_size <= 0:
            raise InvalidArgument("Cache size must be positive")
        self.inner = inner
        self.max_size = max_size
        self._cache: 'OrderedDict[str, bytes]' = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._warned_full = False

    @property
    def hasher(self) -> Hasher:
        return self.inner.hasher

    def __getattr__(self, name):
        # object_path, objects_dir, compress, ...
        if name == 'inner':
            raise AttributeError(name)
        return getattr(self.inner, name)

    def _remember(self, oid: str, data: bytes) -> None:
        self._cache[oid] = data
        self._cache.move_to_end(oid)
        if len(self._cache) > self.max_size:
            if not self._warned_full:
                logger.warning(
                    "Object cache full (%d objects), evicting least recently used",
                    self.max_size
                )
                self._warned_full = True
            self._cache.popitem(last=False)

    def stage_object(self, obj: PgObject) -> StagedObjectWrite:
        return self.inner.stage_object(obj)

    def commit_staged_object(self, staged: StagedObjectWrite) -> str:
        oid = self.inner.commit_staged_object(staged)
        if oid not in self._cache:
            data = staged.payload
            if data[:1] == bytes([_ZLIB_MAGIC]):
                data = zlib.decompress(data)
            self._remember(oid, data)
        return oid

    def read_object(self, oid: str) -> PgObject:
        cached = self._cache.get(oid)
        if cached is not None:
            self._hits += 1
            self._cache.move_to_end(oid)
            return deserialize_object(cached, self.hasher.digest_size)

        self._misses += 1
        obj = self.inner.read_object(oid)
        self._remember(oid, serialize_object(obj))
        return obj

    def contains(self, oid: str) -> bool:
        return self.inner.contains(oid)

    def iter_object_ids(self) -> Iterator[str]:
        return self.inner.iter_object_ids()

    def stats(self) -> dict:
        """Cache size, hits, misses and hit rate (percent)."""
        total = self._hits + self._misses
        return {
            'size': len(self._cache),
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': (self._hits * 100.0 / total) if total else 0.0,
        }

    def clear_cache(self) -> None:
        """Drop all cached objects and reset statistics."""
        stats = self.stats()
        logger.debug(
            "Object cache cleared: %d hits, %d misses (%.1f%% hit rate)",
            stats['hits'], stats['misses'], stats['hit_rate']
        )
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        self._warned_full = False

    def __repr__(self) -> str:
        return f"CachedObjectStore({self.inner!r}, max_size={self.max_size})"

"""Guardian objects: blobs, trees and commits."""

import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Type

from .errors import CorruptObject, InvalidArgument
from .hash import Hasher

MODE_FILE = '100644'
MODE_EXECUTABLE = '100755'
MODE_TREE = '040000'

_BLOB_MODES = (MODE_FILE, MODE_EXECUTABLE)
_HEX_DIGITS = frozenset(string.hexdigits.lower())


def is_object_id(value) -> bool:
    """Return True if value looks like a lowercase hex object id."""
    return (
        isinstance(value, str)
        and len(value) >= 2
        and len(value) % 2 == 0
        and all(c in _HEX_DIGITS for c in value)
    )


def _check_object_id(value, what: str) -> str:
    if not is_object_id(value):
        raise InvalidArgument(f"Invalid {what} object id: {value!r}")
    return value


class PgObject(ABC):
    """Base class for all Guardian objects."""

    type: str = ''

    @abstractmethod
    def serialize(self) -> bytes:
        """
        Serialize the object payload (without header).

        Returns:
            bytes: Payload bytes
        """
        pass

    @abstractmethod
    def deserialize(self, data: bytes, digest_size: int = 32) -> None:
        """
        Load the object from payload bytes.

        Args:
            data: Payload bytes
            digest_size: Raw digest size of the store's hasher

        Raises:
            CorruptObject: If the payload cannot be parsed
        """
        pass

    def referenced_ids(self) -> List[str]:
        """Object ids this object points at."""
        return []

    def compute_id(self, hasher: Hasher) -> str:
        """
        Compute the object id.

        The id covers the header as well as the payload, so objects of
        different types never share an id.
        Format: <type> <size>\\0<payload>

        Args:
            hasher: Hasher to digest with

        Returns:
            str: Lowercase hex id
        """
        return hasher.hex_digest(serialize_object(self))

    def __eq__(self, other) -> bool:
        if not isinstance(other, PgObject):
            return NotImplemented
        return self.type == other.type and self.serialize() == other.serialize()


class Blob(PgObject):
    """
    Represents file content.

    A blob stores the raw content of a file without any metadata
    like filename or permissions.
    """

    type = 'blob'

    def __init__(self, data: Optional[bytes] = None):
        self.data = bytes(data or b'')

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes, digest_size: int = 32) -> None:
        self.data = bytes(data)

    @classmethod
    def from_file(cls, filepath: str) -> 'Blob':
        """
        Create blob from file.

        Args:
            filepath: Path to file

        Returns:
            Blob: New blob containing file content
        """
        with open(filepath, 'rb') as f:
            return cls(f.read())

    def __repr__(self) -> str:
        return f"Blob(size={len(self.data)})"


@dataclass(frozen=True)
class TreeEntry:
    """
    A single entry in a tree.

    mode is '100644' or '100755' for files and '040000' for directories;
    the entry kind follows from it.
    """

    mode: str
    name: str
    object_id: str

    def __post_init__(self):
        if self.mode not in _BLOB_MODES and self.mode != MODE_TREE:
            raise InvalidArgument(f"Invalid tree entry mode: {self.mode!r}")
        if not self.name or '/' in self.name or '\0' in self.name or self.name in ('.', '..'):
            raise InvalidArgument(f"Invalid tree entry name: {self.name!r}")
        _check_object_id(self.object_id, 'tree entry')

    @property
    def type(self) -> str:
        """Entry kind: 'tree' or 'blob'."""
        return 'tree' if self.mode == MODE_TREE else 'blob'

    def __repr__(self) -> str:
        return f"TreeEntry({self.mode} {self.type} {self.object_id[:7]} {self.name})"


class Tree(PgObject):
    """
    Represents directory structure.

    Entries are kept in insertion order; the order is part of the payload
    and therefore of the id. Builders that want canonical ids must add
    entries in a canonical order.
    """

    type = 'tree'

    def __init__(self, entries: Optional[Iterable[TreeEntry]] = None):
        self.entries: List[TreeEntry] = []
        for entry in entries or ():
            self._append(entry)

    def _append(self, entry: TreeEntry) -> None:
        if any(existing.name == entry.name for existing in self.entries):
            raise InvalidArgument(f"Duplicate tree entry: {entry.name!r}")
        self.entries.append(entry)

    def add_entry(self, mode: str, name: str, object_id: str) -> TreeEntry:
        """
        Append an entry to the tree.

        Args:
            mode: Entry mode
            name: Entry name (single path segment)
            object_id: Id of the blob or subtree

        Returns:
            TreeEntry: The new entry
        """
        entry = TreeEntry(mode, name, object_id)
        self._append(entry)
        return entry

    def get(self, name: str) -> Optional[TreeEntry]:
        """Return the entry called name, if any."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def referenced_ids(self) -> List[str]:
        return [entry.object_id for entry in self.entries]

    def serialize(self) -> bytes:
        """
        Serialize entries in order.

        Format per entry: <mode> <name>\\0<raw digest bytes>
        """
        parts = []
        for entry in self.entries:
            parts.append(f"{entry.mode} {entry.name}".encode('utf-8'))
            parts.append(b'\0')
            parts.append(bytes.fromhex(entry.object_id))
        return b''.join(parts)

    def deserialize(self, data: bytes, digest_size: int = 32) -> None:
        entries = []
        pos = 0

        while pos < len(data):
            space_pos = data.find(b' ', pos)
            if space_pos == -1:
                raise CorruptObject("Invalid tree entry: missing space after mode")
            null_pos = data.find(b'\0', space_pos)
            if null_pos == -1:
                raise CorruptObject("Invalid tree entry: missing null after name")
            end = null_pos + 1 + digest_size
            if end > len(data):
                raise CorruptObject("Invalid tree entry: truncated object id")

            try:
                mode = data[pos:space_pos].decode('ascii')
                name = data[space_pos + 1:null_pos].decode('utf-8')
                entries.append(TreeEntry(mode, name, data[null_pos + 1:end].hex()))
            except (UnicodeDecodeError, InvalidArgument) as exc:
                raise CorruptObject(f"Invalid tree entry: {exc}") from exc

            pos = end

        self.entries = []
        for entry in entries:
            if self.get(entry.name) is not None:
                raise CorruptObject(f"Duplicate tree entry: {entry.name!r}")
            self.entries.append(entry)

    def __repr__(self) -> str:
        return f"Tree(entries={len(self.entries)})"


class Commit(PgObject):
    """
    Represents a snapshot with metadata.

    A commit captures:
    - Snapshot of project (tree id)
    - Parent commit(s) in order (none for a root, two or more for a merge)
    - Author and committer
    - Unix timestamp
    - Message
    """

    type = 'commit'

    def __init__(self):
        self.tree: str = ''
        self.parents: List[str] = []
        self.author: str = ''
        self.committer: str = ''
        self.timestamp: int = 0
        self.message: str = ''

    def referenced_ids(self) -> List[str]:
        return [self.tree] + list(self.parents)

    def serialize(self) -> bytes:
        """
        Serialize commit.

        Format:
        tree <tree-id>
        parent <parent-id>  (zero or more)
        author <author>
        committer <committer>
        timestamp <unix seconds>

        <message>
        """
        lines = [f'tree {self.tree}']
        lines.extend(f'parent {parent}' for parent in self.parents)
        lines.append(f'author {self.author}')
        lines.append(f'committer {self.committer}')
        lines.append(f'timestamp {self.timestamp}')
        lines.append('')
        lines.append(self.message)
        return '\n'.join(lines).encode('utf-8')

    def deserialize(self, data: bytes, digest_size: int = 32) -> None:
        try:
            content = data.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise CorruptObject(f"Commit is not valid UTF-8: {exc}") from exc

        headers, sep, message = content.partition('\n\n')
        if not sep:
            raise CorruptObject("Commit missing blank line after headers")

        tree = None
        parents = []
        author = committer = None
        timestamp = 0

        for line in headers.split('\n'):
            key, _, value = line.partition(' ')
            if key == 'tree':
                tree = value
            elif key == 'parent':
                parents.append(value)
            elif key == 'author':
                author = value
            elif key == 'committer':
                committer = value
            elif key == 'timestamp':
                try:
                    timestamp = int(value)
                except ValueError:
                    raise CorruptObject(f"Invalid commit timestamp: {value!r}") from None
            else:
                raise CorruptObject(f"Unknown commit header: {key!r}")

        if tree is None:
            raise CorruptObject("Commit missing tree header")
        if author is None:
            raise CorruptObject("Commit missing author header")
        if committer is None:
            raise CorruptObject("Commit missing committer header")
        for object_id in [tree] + parents:
            if not is_object_id(object_id):
                raise CorruptObject(f"Invalid object id in commit: {object_id!r}")

        self.tree = tree
        self.parents = parents
        self.author = author
        self.committer = committer
        self.timestamp = timestamp
        self.message = message

    @classmethod
    def create(
        cls,
        tree_id: str,
        parent_ids: Optional[Iterable[str]],
        author: str,
        message: str,
        committer: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> 'Commit':
        """
        Create a new commit.

        Args:
            tree_id: Id of the root tree
            parent_ids: Parent commit ids, in order
            author: Author, e.g. "Name <email>"
            message: Commit message
            committer: Committer (defaults to author)
            timestamp: Unix timestamp (defaults to current time)

        Returns:
            Commit: New commit object

        Raises:
            InvalidArgument: If an id or identity is malformed
        """
        committer = committer or author
        for identity in (author, committer):
            if not identity or '\n' in identity:
                raise InvalidArgument(f"Invalid author/committer: {identity!r}")

        commit = cls()
        commit.tree = _check_object_id(tree_id, 'tree')
        commit.parents = [_check_object_id(p, 'parent') for p in parent_ids or ()]
        commit.author = author
        commit.committer = committer
        commit.message = message or ''
        commit.timestamp = int(time.time()) if timestamp is None else int(timestamp)
        return commit

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.split('\n', 1)[0]

    def __repr__(self) -> str:
        parent_info = f", parents={len(self.parents)}" if self.parents else ""
        return f"Commit(tree={self.tree[:7]}{parent_info}, msg='{self.summary[:50]}')"


OBJECT_TYPES: Dict[str, Type[PgObject]] = {
    Blob.type: Blob,
    Tree.type: Tree,
    Commit.type: Commit,
}


def serialize_object(obj: PgObject) -> bytes:
    """
    Serialize object with its header.

    Format: <type> <size>\\0<payload>

    Args:
        obj: Object to serialize

    Returns:
        bytes: Header followed by payload
    """
    payload = obj.serialize()
    return f"{obj.type} {len(payload)}\0".encode('ascii') + payload


def deserialize_object(data: bytes, digest_size: int = 32) -> PgObject:
    """
    Parse header and payload back into an object.

    Args:
        data: Bytes produced by serialize_object
        digest_size: Raw digest size used for tree entries

    Returns:
        PgObject: Blob, Tree or Commit

    Raises:
        CorruptObject: On a malformed header, a length mismatch, an unknown
            type or an unparseable payload
    """
    null_idx = data.find(b'\0')
    if null_idx == -1:
        raise CorruptObject("Invalid object: missing null terminator in header")

    try:
        header = data[:null_idx].decode('ascii')
    except UnicodeDecodeError:
        raise CorruptObject("Invalid object header encoding") from None

    obj_type, _, size_str = header.partition(' ')
    if not size_str.isdigit():
        raise CorruptObject(f"Invalid object header: {header!r}")

    payload = data[null_idx + 1:]
    size = int(size_str)
    if len(payload) != size:
        raise CorruptObject(f"Object size mismatch: expected {size}, got {len(payload)}")

    cls = OBJECT_TYPES.get(obj_type)
    if cls is None:
        raise CorruptObject(f"Unknown object type: {obj_type!r}")

    obj = cls()
    obj.deserialize(payload, digest_size)
    return obj

"""Unit tests for the object store and its staged write protocol."""

import pytest
import zlib
from guardian.core.errors import CorruptObject, InvalidArgument, NotFound, StorageError
from guardian.core.hash import Blake2bHasher, Sha256Hasher
from guardian.core.objects import Blob, Commit, Tree, MODE_FILE, serialize_object
from guardian.core.storage import ObjectStore, StagedObjectWrite

AUTHOR = "Test User <test@example.com>"


@pytest.fixture
def store(tmp_path):
    """Bare object store in a temp directory."""
    return ObjectStore(tmp_path / 'objects')


def test_object_path_layout(store):
    """Test ids map to <first two>/<rest>."""
    oid = 'ab' + 'c' * 62
    assert store.object_path(oid) == store.objects_dir / 'ab' / ('c' * 62)


def test_object_path_rejects_bad_ids(store):
    """Test malformed or wrongly sized ids are invalid."""
    for oid in ('', 'AB' * 32, 'ab' * 20, '../' + 'a' * 61):
        with pytest.raises(InvalidArgument):
            store.object_path(oid)


def test_stage_does_not_touch_disk(store):
    """Test staging computes everything without writing."""
    staged = store.stage_object(Blob(b'hello'))

    assert isinstance(staged, StagedObjectWrite)
    assert staged.object_id == Sha256Hasher().hex_digest(b'blob 5\x00hello')
    assert staged.target_path == store.object_path(staged.object_id)
    assert staged.payload == b'blob 5\x00hello'
    assert staged.exists_already is False
    assert not store.objects_dir.exists()


def test_stage_is_repeatable(store):
    """Test staging the same object twice gives equal results."""
    assert store.stage_object(Blob(b'x')) == store.stage_object(Blob(b'x'))


def test_stage_rejects_non_objects(store):
    """Test staging something that is not an object."""
    with pytest.raises(InvalidArgument):
        store.stage_object(b'raw bytes')


def test_stage_rejects_bad_referenced_ids(store):
    """Test references must be ids of the store's size."""
    tree = Tree()
    tree.add_entry(MODE_FILE, 'f', 'ab' * 20)
    with pytest.raises(InvalidArgument):
        store.stage_object(tree)


def test_stage_commit_requires_parents(store):
    """Test commits can only be staged on top of stored parents."""
    tree_id, _ = store.write_object(Tree())
    orphan = Commit.create(tree_id, ['d' * 64], AUTHOR, "orphan")
    with pytest.raises(InvalidArgument):
        store.stage_object(orphan)


def test_stage_commit_rejects_non_commit_parents(store):
    """Test parents must be commits, not blobs or trees."""
    tree_id, _ = store.write_object(Tree())
    blob_id, _ = store.write_object(Blob(b"content"))

    for parent_id in (blob_id, tree_id):
        commit = Commit.create(tree_id, [parent_id], AUTHOR, "bad parent")
        with pytest.raises(InvalidArgument):
            store.stage_object(commit)

    root_id, _ = store.write_object(Commit.create(tree_id, [], AUTHOR, "root"))
    child = Commit.create(tree_id, [root_id], AUTHOR, "child")
    assert store.stage_object(child).object_id


def test_commit_staged_writes_file(store):
    """Test committing makes the object readable."""
    staged = store.stage_object(Blob(b'content'))
    oid = store.commit_staged_object(staged)

    assert oid == staged.object_id
    assert staged.target_path.read_bytes() == staged.payload
    assert store.contains(oid)
    assert store.read_object(oid) == Blob(b'content')


def test_commit_staged_leaves_no_temp_files(store):
    """Test the temp file is renamed into place."""
    staged = store.stage_object(Blob(b'content'))
    store.commit_staged_object(staged)
    assert [p.name for p in staged.target_path.parent.iterdir()] == [staged.target_path.name]


def test_commit_staged_is_noop_when_present(store):
    """Test a second commit of the same object does not rewrite it."""
    oid, _ = store.write_object(Blob(b'same'))
    path = store.object_path(oid)
    mtime = path.stat().st_mtime_ns

    staged = store.stage_object(Blob(b'same'))
    assert staged.exists_already is True
    assert store.commit_staged_object(staged) == oid
    assert path.stat().st_mtime_ns == mtime


def test_commit_staged_rejects_other_types(store):
    """Test only StagedObjectWrite can be committed."""
    with pytest.raises(InvalidArgument):
        store.commit_staged_object(Blob(b'x'))


def test_commit_staged_objects_batch(store):
    """Test committing a batch returns ids in order."""
    staged = [store.stage_object(Blob(bytes([i]))) for i in range(3)]
    assert store.commit_staged_objects(staged) == [s.object_id for s in staged]
    assert all(store.contains(s.object_id) for s in staged)


def test_commit_staged_storage_error(store, tmp_path):
    """Test filesystem failures surface as StorageError."""
    store.objects_dir.parent.mkdir(parents=True, exist_ok=True)
    store.objects_dir.write_text('not a directory')
    with pytest.raises(StorageError):
        store.write_object(Blob(b'x'))


def test_write_object_returns_written_bytes(store):
    """Test write_object returns the id and exact bytes on disk."""
    oid, written = store.write_object(Blob(b'abc'))
    assert written == b'blob 3\x00abc'
    assert store.object_path(oid).read_bytes() == written


def test_read_missing(store):
    """Test reading an absent object."""
    with pytest.raises(NotFound):
        store.read_object('e' * 64)


def test_read_corrupt_bytes(store):
    """Test unparseable stored bytes are corrupt."""
    oid = 'f' * 64
    path = store.object_path(oid)
    path.parent.mkdir(parents=True)
    path.write_bytes(b'garbage without header')
    with pytest.raises(CorruptObject):
        store.read_object(oid)


def test_read_detects_tampering(store):
    """Test a valid object stored under the wrong id fails the integrity check."""
    oid, _ = store.write_object(Blob(b'original'))
    store.object_path(oid).write_bytes(serialize_object(Blob(b'tampered')))
    with pytest.raises(CorruptObject):
        store.read_object(oid)


def test_read_bad_zlib(store):
    """Test a broken compressed stream is corrupt."""
    oid = '1' * 64
    path = store.object_path(oid)
    path.parent.mkdir(parents=True)
    path.write_bytes(b'\x78\x9cnot really zlib')
    with pytest.raises(CorruptObject):
        store.read_object(oid)


def test_compressed_store(tmp_path):
    """Test compressed objects keep the uncompressed id and read back."""
    plain = ObjectStore(tmp_path / 'plain')
    packed = ObjectStore(tmp_path / 'packed', compress=True)
    blob = Blob(b'hello ' * 100)

    oid_plain, _ = plain.write_object(blob)
    oid_packed, written = packed.write_object(blob)

    assert oid_plain == oid_packed
    assert zlib.decompress(written) == serialize_object(blob)
    assert packed.read_object(oid_packed) == blob
    # Readers detect compression per object
    assert ObjectStore(tmp_path / 'packed').read_object(oid_packed) == blob


def test_contains(store):
    """Test contains for stored, absent and malformed ids."""
    oid, _ = store.write_object(Blob(b'x'))
    assert store.contains(oid)
    assert not store.contains('0' * 64)
    assert not store.contains('nope')


def test_iter_object_ids(store):
    """Test listing stored ids skips unrelated files."""
    ids = sorted(store.write_object(Blob(bytes([i])))[0] for i in range(3))
    (store.objects_dir / 'info').mkdir()
    (store.objects_dir / 'ab').mkdir(exist_ok=True)
    (store.objects_dir / 'ab' / '.tmp-file').write_text('x')

    assert sorted(store.iter_object_ids()) == ids


def test_iter_object_ids_empty(store):
    """Test listing a store that was never written to."""
    assert list(store.iter_object_ids()) == []


def test_find_by_prefix(store):
    """Test prefix lookup."""
    oid, _ = store.write_object(Blob(b'findme'))
    assert store.find_by_prefix(oid[:8]) == [oid]
    assert store.find_by_prefix(oid[:8].upper()) == [oid]


def test_blake2b_store(tmp_path):
    """Test a store with a different hasher addresses objects differently."""
    sha = ObjectStore(tmp_path / 'sha')
    blake = ObjectStore(tmp_path / 'blake', Blake2bHasher())
    blob_id, _ = blake.write_object(Blob(b'x'))

    tree = Tree()
    tree.add_entry(MODE_FILE, 'x', blob_id)
    tree_id, _ = blake.write_object(tree)

    assert blob_id != sha.write_object(Blob(b'x'))[0]
    assert blake.read_object(tree_id).entries[0].object_id == blob_id


def test_commit_roundtrip_through_store(store):
    """Test a commit chain survives a write/read cycle."""
    tree_id, _ = store.write_object(Tree())
    root = Commit.create(tree_id, [], AUTHOR, "root", timestamp=1)
    root_id, _ = store.write_object(root)
    child = Commit.create(tree_id, [root_id], AUTHOR, "child", timestamp=2)
    child_id, _ = store.write_object(child)

    parsed = store.read_object(child_id)
    assert parsed.parents == [root_id]
    assert parsed == child

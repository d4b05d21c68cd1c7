"""Repository management for Guardian."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .config import DEFAULT_CACHE_SIZE, Config
from .errors import InvalidArgument, NotFound, UnbornBranch
from .hash import DEFAULT_HASH_ALGORITHM, Hasher, get_hasher
from .objects import Commit, PgObject
from .refs import SYMBOLIC_PREFIX, RefManager, branch_ref, check_ref_name
from .storage import BaseObjectStore, CachedObjectStore, ObjectStore, StagedObjectWrite

logger = logging.getLogger(__name__)


class Repository:
    """
    Handle on one Guardian repository.

    A repository manages the .pg directory of a project and gives access
    to its object store, refs and stash. Handles are independent: open as
    many as needed, there is no process-wide current repository.
    """

    PG_DIR = '.pg'

    def __init__(self, path: Union[str, Path] = '.'):
        """
        Initialize repository.

        Args:
            path: Path to project root (defaults to current directory)
        """
        self.work_tree = Path(path).resolve()
        self.pg_dir = self.work_tree / self.PG_DIR
        self.objects_dir = self.pg_dir / 'objects'
        self.refs_dir = self.pg_dir / 'refs'
        self.heads_dir = self.refs_dir / 'heads'
        self.head_file = self.pg_dir / 'HEAD'
        self.config_file = self.pg_dir / 'config'

        self._config: Optional[Config] = None
        self._store: Optional[BaseObjectStore] = None
        self._ref_manager: Optional[RefManager] = None
        self._stash_manager = None

    @property
    def config(self) -> Config:
        """Get Config instance."""
        if self._config is None:
            self._config = Config(self.config_file)
        return self._config

    @property
    def hasher(self) -> Hasher:
        """Hasher recorded in the repository config."""
        return self.store.hasher

    @property
    def store(self) -> BaseObjectStore:
        """Get the object store, wrapped in a read cache unless disabled."""
        if self._store is None:
            config = self.config
            store: BaseObjectStore = ObjectStore(
                self.objects_dir,
                get_hasher(config.get('core', 'hashalgorithm', DEFAULT_HASH_ALGORITHM)),
                compress=config.get_bool('core', 'compression', False),
            )
            if config.get_bool('core', 'objectcache', True):
                store = CachedObjectStore(
                    store, config.get_int('core', 'cachesize', DEFAULT_CACHE_SIZE)
                )
            self._store = store
        return self._store

    @property
    def refs(self) -> RefManager:
        """Get RefManager instance."""
        if self._ref_manager is None:
            self._ref_manager = RefManager(self)
        return self._ref_manager

    @property
    def stash(self):
        """Get StashManager instance."""
        if self._stash_manager is None:
            from guardian.operations.stash import StashManager
            self._stash_manager = StashManager(self)
        return self._stash_manager

    def is_initialized(self) -> bool:
        return self.pg_dir.is_dir()

    def init(self, default_branch: str = 'main',
             hash_algorithm: Optional[str] = None) -> 'Repository':
        """
        Initialize a new repository.

        Creates the .pg directory structure:
        .pg/
        ├── objects/            # Object database
        ├── refs/heads/<branch> # Default branch, unborn (empty)
        ├── HEAD                # ref: refs/heads/<branch>
        └── config              # Repository configuration

        Returns:
            Repository: self for method chaining

        Raises:
            InvalidArgument: If a repository already exists, the hash
                algorithm is unknown or the branch name is invalid
        """
        if self.pg_dir.exists():
            raise InvalidArgument(f"Repository already exists at {self.pg_dir}")
        hasher = get_hasher(hash_algorithm or DEFAULT_HASH_ALGORITHM)
        head_target = check_ref_name(branch_ref(default_branch))

        self.objects_dir.mkdir(parents=True)
        self.heads_dir.mkdir(parents=True)
        self.head_file.write_text(f"{SYMBOLIC_PREFIX}{head_target}\n")

        self._config = None
        self._store = None
        self.config.set('core', 'repositoryformatversion', '0')
        self.config.set('core', 'hashalgorithm', hasher.name)

        self.refs.create_branch(default_branch)
        logger.info("Initialized repository at %s (%s)", self.pg_dir, hasher.name)
        return self

    @classmethod
    def find_repository(cls, path: Union[str, Path] = '.') -> Optional['Repository']:
        """
        Find repository by searching up the directory tree.

        Returns:
            Repository if found, None otherwise
        """
        current = Path(path).resolve()

        while True:
            if (current / cls.PG_DIR).is_dir():
                return cls(current)
            if current == current.parent:
                return None
            current = current.parent

    @classmethod
    def open(cls, path: Union[str, Path] = '.') -> 'Repository':
        """
        Open the repository containing path and finish any ref updates
        interrupted by a crash.

        Raises:
            NotFound: If no repository encloses path
        """
        repo = cls.find_repository(path)
        if repo is None:
            raise NotFound(f"Not a guardian repository: {Path(path).resolve()}")
        recovered = repo.refs.recover()
        if recovered:
            logger.warning("Recovered %d interrupted ref update(s)", len(recovered))
        return repo

    def stage_object(self, obj: PgObject) -> StagedObjectWrite:
        return self.store.stage_object(obj)

    def commit_staged_object(self, staged: StagedObjectWrite) -> str:
        return self.store.commit_staged_object(staged)

    def write_object(self, obj: PgObject) -> Tuple[str, bytes]:
        """
        Write object to repository.

        Returns:
            Tuple of (object id, bytes written)
        """
        return self.store.write_object(obj)

    def read_object(self, oid: str) -> PgObject:
        return self.store.read_object(oid)

    def contains(self, oid: str) -> bool:
        return self.store.contains(oid)

    def object_path(self, oid: str) -> Path:
        return self.store.object_path(oid)

    def head_commit(self) -> Optional[str]:
        """Resolved HEAD commit id, or None while HEAD's branch is unborn."""
        try:
            return self.refs.resolve_head()
        except UnbornBranch:
            return None

    def commit_tree(
        self,
        tree_id: str,
        message: str,
        author: str,
        committer: Optional[str] = None,
        parents: Optional[Iterable[str]] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        """
        Write a commit object without moving any ref.

        Returns:
            Commit id
        """
        commit = Commit.create(
            tree_id=tree_id,
            parent_ids=parents,
            author=author,
            committer=committer,
            message=message,
            timestamp=timestamp,
        )
        commit_id, _ = self.write_object(commit)
        return commit_id

    def resolve_author(self, author: Optional[str] = None) -> str:
        """Explicit author, else the configured identity."""
        author = author or self.config.get_author()
        if not author:
            raise InvalidArgument("No author given and user.name is not configured")
        return author

    def snapshot(
        self,
        message: str,
        author: Optional[str] = None,
        include_roots: Optional[List[str]] = None,
        committer: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        """
        Snapshot the work tree and advance HEAD.

        The new commit's parent is the current HEAD commit (none on an
        unborn branch). An attached HEAD moves its branch; a detached HEAD
        moves itself.

        Returns:
            New commit id
        """
        from guardian.operations.snapshot import SnapshotBuilder

        if not message:
            raise InvalidArgument("Snapshot message must not be empty")
        author = self.resolve_author(author)

        tree_id = SnapshotBuilder(self).build_tree(include_roots)
        parent = self.head_commit()
        commit_id = self.commit_tree(
            tree_id, message, author,
            committer=committer,
            parents=[parent] if parent else [],
            timestamp=timestamp,
        )

        head_ref = self.refs.head_ref
        description = f"snapshot: {message.splitlines()[0]}"
        if head_ref.startswith('refs/'):
            self.refs.update_ref(head_ref, commit_id, description)
        else:
            self.refs.set_head(commit_id)
        logger.info("Snapshot %s on %s", commit_id[:12], head_ref)
        return commit_id

    def walk_history(self, max_count: int, start=None) -> List[Tuple[str, Commit]]:
        """Breadth-first commit history from HEAD (or start), newest first."""
        from guardian.operations.history import walk_history
        return walk_history(self, max_count, start)

    def __repr__(self) -> str:
        return f"Repository(path={self.work_tree})"

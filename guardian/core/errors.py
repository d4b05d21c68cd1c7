"""Exception types raised by the Guardian core."""


class GuardianError(Exception):
    """Base class for all Guardian errors."""


class InvalidArgument(GuardianError, ValueError):
    """A null/empty id, malformed object or bad name was passed in."""


class NotFound(GuardianError, LookupError):
    """An object or ref does not exist."""

    def __str__(self) -> str:
        # LookupError quotes its argument; keep messages plain
        return str(self.args[0]) if self.args else ''


class CorruptObject(GuardianError):
    """Stored bytes failed to parse as an object."""


class DanglingRef(GuardianError):
    """A ref points at a ref name that does not exist."""


class UnbornBranch(GuardianError):
    """
    The branch exists but has no commit yet.
    
    This is a valid repository state (a fresh repository is in it),
    not a resolution failure.
    """
    
    def __init__(self, ref_name: str):
        super().__init__(f"Branch {ref_name} has no commits yet")
        self.ref_name = ref_name


class StorageError(GuardianError):
    """Underlying filesystem I/O failed."""

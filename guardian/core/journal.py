"""Write-ahead journal for ref updates.

Each ref write is recorded as a 'begin' line before the file is touched
and a 'commit' line after. A 'begin' without a matching 'commit' marks an
update that was interrupted; it is replayed the next time the repository
is opened.
"""

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List

from .errors import StorageError

logger = logging.getLogger(__name__)


@dataclass
class PendingRefUpdate:
    """A journaled ref update that never reached its commit record."""

    ref_name: str
    new_value: str
    description: str = ''


class Journal:
    """Append-only JSON lines log at .pg/journal.log."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _append(self, record: dict) -> None:
        record['time'] = int(time.time())
        try:
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(json.dumps(record, sort_keys=True) + '\n')
        except OSError as exc:
            raise StorageError(f"Failed to append to journal: {exc}") from exc

    def begin(self, ref_name: str, new_value: str, description: str = '') -> None:
        """Record the intent to point ref_name at new_value."""
        self._append({
            'op': 'begin',
            'ref': ref_name,
            'value': new_value,
            'description': description,
        })

    def commit(self, ref_name: str) -> None:
        """Record that the update of ref_name completed."""
        self._append({'op': 'commit', 'ref': ref_name})

    @contextmanager
    def transaction(self, ref_name: str, new_value: str, description: str = '') -> Iterator[None]:
        """
        Journal the update performed inside the with-block.

        The commit record is only written when the block exits cleanly;
        the journal is then truncated once nothing is left pending.
        """
        self.begin(ref_name, new_value, description)
        yield
        self.commit(ref_name)
        if not self.pending():
            self.clear()

    def pending(self) -> List[PendingRefUpdate]:
        """
        List updates that were begun but not committed.

        Unparseable lines (e.g. a torn final write) are ignored.
        """
        if not self.path.exists():
            return []

        try:
            lines = self.path.read_text(encoding='utf-8').splitlines()
        except OSError as exc:
            raise StorageError(f"Failed to read journal: {exc}") from exc

        pending: Dict[str, PendingRefUpdate] = {}
        for line in lines:
            try:
                record = json.loads(line)
                op, ref_name = record['op'], record['ref']
            except (ValueError, KeyError, TypeError):
                logger.debug("Skipping unreadable journal line: %r", line)
                continue

            if op == 'begin':
                pending[ref_name] = PendingRefUpdate(
                    ref_name, record.get('value', ''), record.get('description', '')
                )
            elif op == 'commit':
                pending.pop(ref_name, None)

        return list(pending.values())

    def recover(self, apply: Callable[[PendingRefUpdate], None]) -> List[PendingRefUpdate]:
        """
        Replay interrupted updates and clear the journal.

        Args:
            apply: Callback that performs one ref write

        Returns:
            The updates that were replayed
        """
        pending = self.pending()
        for update in pending:
            logger.info("Recovering ref %s -> %s", update.ref_name, update.new_value)
            apply(update)
        self.clear()
        return pending

    def clear(self) -> None:
        """Remove the journal file."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageError(f"Failed to clear journal: {exc}") from exc

    def __repr__(self) -> str:
        return f"Journal(path={self.path})"


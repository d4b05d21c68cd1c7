"""Ignore rules for .pgignore files."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

logger = logging.getLogger(__name__)

IGNORE_FILE = '.pgignore'

DEFAULT_IGNORE_PATTERNS = [
    '.pg/',
    '.git/',
    '.svn/',
    '.hg/',
    '.vs/',
    '.idea/',
    '.vscode/',
    '__pycache__/',
    '*.tmp',
    '*.swp',
    '.DS_Store',
    'Thumbs.db',
    'desktop.ini',
]


def _translate(pattern: str) -> str:
    """Convert the glob part of a pattern to a regex fragment."""
    out = []
    i = 0
    n = len(pattern)

    while i < n:
        c = pattern[i]
        if pattern.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            out.append('.*')
            i += 2
        elif c == '*':
            out.append('[^/]*')
            i += 1
        elif c == '?':
            out.append('[^/]')
            i += 1
        elif c == '[':
            end = pattern.find(']', i + 2 if pattern[i + 1:i + 2] in ('!', ']') else i + 1)
            if end == -1:
                out.append(re.escape(c))
                i += 1
                continue
            body = pattern[i + 1:end]
            if body.startswith('!'):
                body = '^' + body[1:]
            out.append('[' + body.replace('\\', '\\\\') + ']')
            i = end + 1
        else:
            out.append(re.escape(c))
            i += 1

    return ''.join(out)


@dataclass
class IgnoreRule:
    """
    A single gitignore-style pattern.

    Patterns containing a slash are anchored at the project root; others
    match a name at any depth. A trailing slash restricts the rule to
    directories (and everything below them).
    """

    pattern: str
    negated: bool = False
    directory_only: bool = False
    regex: 're.Pattern' = field(init=False, repr=False)

    def __post_init__(self):
        body = self.pattern
        anchored = '/' in body
        body = body.lstrip('/')
        prefix = '^' if anchored else '(?:^|/)'
        self.regex = re.compile(prefix + _translate(body) + '(?P<rest>/.*)?$')

    @classmethod
    def parse(cls, line: str):
        """Build a rule from one line of an ignore file, or None for blanks/comments."""
        line = line.rstrip('\n').strip()
        if not line or line.startswith('#'):
            return None

        negated = line.startswith('!')
        if negated:
            line = line[1:]
        directory_only = line.endswith('/')
        line = line.rstrip('/')
        if not line:
            return None
        return cls(line, negated, directory_only)

    def matches(self, path: str, is_dir: bool = False) -> bool:
        match = self.regex.search(path)
        if match is None:
            return False
        # 'build/' matches the directory itself or anything beneath it
        if self.directory_only and not is_dir and match.group('rest') is None:
            return False
        return True


class IgnoreRules:
    """Ordered set of ignore rules; the last matching rule wins."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.rules: List[IgnoreRule] = []
        self._cache: Dict[Tuple[str, bool], bool] = {}
        self.add_patterns(patterns)

    def add_pattern(self, pattern: str) -> None:
        rule = IgnoreRule.parse(pattern)
        if rule is not None:
            self.rules.append(rule)
            self._cache.clear()

    def add_patterns(self, patterns: Iterable[str]) -> None:
        for pattern in patterns:
            self.add_pattern(pattern)

    def load_file(self, path: Path) -> bool:
        """
        Load patterns from an ignore file.

        Returns:
            True if the file existed and was loaded
        """
        path = Path(path)
        if not path.is_file():
            return False
        self.add_patterns(path.read_text(encoding='utf-8').splitlines())
        logger.debug("Loaded ignore rules from %s", path)
        return True

    def is_ignored(self, path: str, is_dir: bool = False) -> bool:
        """
        Check if a project-relative path is ignored.

        Args:
            path: Path relative to the project root, '/' or '\\' separated
            is_dir: Whether the path is a directory
        """
        path = path.replace('\\', '/').strip('/')
        if path.startswith('./'):
            path = path[2:]

        key = (path, is_dir)
        if key not in self._cache:
            ignored = False
            for rule in self.rules:
                if rule.matches(path, is_dir):
                    ignored = not rule.negated
            self._cache[key] = ignored
        return self._cache[key]

    def __len__(self) -> int:
        return len(self.rules)


def get_ignore_rules(project_root: Path) -> IgnoreRules:
    """
    Build the ignore rules for a project.

    Loads the built-in defaults, then .pgignore from the project root.
    """
    rules = IgnoreRules(DEFAULT_IGNORE_PATTERNS)
    rules.load_file(Path(project_root) / IGNORE_FILE)
    return rules

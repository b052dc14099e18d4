#!/usr/bin/env python3
"""
linuxsim filesystem - an in-memory directory tree for the simulated shell.

Core philosophy:
- A single mutable root, owned by one FileSystem instance
- Nodes are a tagged pair of types: FileNode and DirNode
- Every operation takes an absolute or cwd-relative path expression
- Failures are reported as status values, never raised
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

HOME_DIR = '/home/kali'
TERMUX_SHEBANG = '#!/data/data/com.termux/files/usr/bin/python3'


@dataclass
class FileNode:
    """Regular file node."""
    content: str = ''
    type: str = field(default='file', init=False)


@dataclass
class DirNode:
    """Directory node holding its children by name."""
    children: Dict[str, 'Node'] = field(default_factory=dict)
    type: str = field(default='directory', init=False)


Node = Union[FileNode, DirNode]


class MkdirStatus(Enum):
    """Outcome of FileSystem.mkdir."""
    CREATED = 'created'
    EXISTS = 'exists'
    PARENT_MISSING = 'parent-missing'
    INVALID_NAME = 'invalid-name'


class ShebangStatus(Enum):
    """Outcome of FileSystem.rewrite_shebang."""
    REWRITTEN = 'rewritten'
    NO_SHEBANG = 'no-shebang'
    NOT_FOUND = 'not-found'
    NOT_A_FILE = 'not-a-file'


@dataclass
class ShebangResult:
    """Result of a shebang rewrite, with the old and new first lines on success."""
    status: ShebangStatus
    old_line: Optional[str] = None
    new_line: Optional[str] = None


class FileSystem:
    """
    In-memory hierarchical filesystem.

    The root directory is created once and mutated in place. Paths are
    slash-delimited strings; resolution never touches the host filesystem.
    """

    def __init__(self, root: Optional[DirNode] = None, home_dir: str = HOME_DIR):
        if root is None:
            from .seed import build_seed_tree
            root = build_seed_tree()
        self.root: DirNode = root
        self.home_dir = home_dir

    # Path handling

    def resolve(self, cwd: str, path: str) -> str:
        """Resolve a path expression against cwd into an absolute path.

        '..' above the root stays at the root.
        """
        if path == '~':
            return self.home_dir

        start = '/' if path.startswith('/') else cwd
        parts = self._split(start)

        for part in path.split('/'):
            if part == '' or part == '.':
                continue
            elif part == '..':
                if parts:
                    parts.pop()
            else:
                parts.append(part)

        return '/' + '/'.join(parts)

    @staticmethod
    def _split(path: str) -> List[str]:
        return [part for part in path.split('/') if part]

    def _parent_and_name(self, path: str) -> Tuple[str, str]:
        """Split an absolute path into its parent path and final segment."""
        parts = self._split(path)
        if not parts:
            return '/', ''
        return '/' + '/'.join(parts[:-1]), parts[-1]

    def lookup(self, path: str) -> Optional[Node]:
        """Walk from the root to the node at an absolute path."""
        node: Node = self.root
        for part in self._split(path):
            if not isinstance(node, DirNode):
                return None
            child = node.children.get(part)
            if child is None:
                return None
            node = child
        return node

    def exists(self, path: str) -> bool:
        """Check if a path exists."""
        return self.lookup(path) is not None

    def is_dir(self, path: str) -> bool:
        """Check if a path is a directory."""
        return isinstance(self.lookup(path), DirNode)

    # Queries

    def listdir(self, path: str, show_hidden: bool = False) -> Optional[List[Tuple[str, bool]]]:
        """List (name, is_dir) pairs of a directory in insertion order."""
        node = self.lookup(path)
        if not isinstance(node, DirNode):
            return None

        entries = []
        for name, child in node.children.items():
            if not show_hidden and name.startswith('.'):
                continue
            entries.append((name, isinstance(child, DirNode)))
        return entries

    def read(self, path: str) -> Optional[str]:
        """Read entire file contents, or None if path is not a file."""
        node = self.lookup(path)
        if isinstance(node, FileNode):
            return node.content
        return None

    # Mutations

    def mkdir(self, cwd: str, target: str) -> MkdirStatus:
        """Create an empty directory at target, resolved against cwd."""
        path = self.resolve(cwd, target)
        parent_path, name = self._parent_and_name(path)

        if not name:
            return MkdirStatus.INVALID_NAME

        if self.lookup(path) is not None:
            return MkdirStatus.EXISTS

        parent = self.lookup(parent_path)
        if not isinstance(parent, DirNode):
            return MkdirStatus.PARENT_MISSING

        parent.children[name] = DirNode()
        logger.debug("mkdir %s", path)
        return MkdirStatus.CREATED

    def materialize_clone(self, cwd: str, repo_name: str) -> bool:
        """Create a cloned repository layout named repo_name under cwd.

        Callers check for an existing entry beforehand; this only reports
        success or failure.
        """
        parent = self.lookup(cwd)
        if not isinstance(parent, DirNode) or repo_name in parent.children:
            return False

        parent.children[repo_name] = DirNode({
            '.git': DirNode(),
            'README.md': FileNode(f'# {repo_name}\n\nA repository cloned with the simulator.'),
            'src': DirNode({
                'main.js': FileNode('console.log("Hello, World!");'),
            }),
        })
        logger.debug("materialized clone %s under %s", repo_name, cwd)
        return True

    def rewrite_shebang(self, path: str) -> ShebangResult:
        """Replace the first-line interpreter of a script with the termux one."""
        node = self.lookup(path)
        if node is None:
            return ShebangResult(ShebangStatus.NOT_FOUND)
        if not isinstance(node, FileNode):
            return ShebangResult(ShebangStatus.NOT_A_FILE)

        lines = node.content.split('\n')
        if not lines[0].startswith('#!'):
            return ShebangResult(ShebangStatus.NO_SHEBANG)

        old_line = lines[0]
        lines[0] = TERMUX_SHEBANG
        node.content = '\n'.join(lines)
        return ShebangResult(ShebangStatus.REWRITTEN, old_line, TERMUX_SHEBANG)

"""Clone packages and their reverse dependencies into local directories."""

from .copier import copy_tree  # noqa: F401
from .resolver import resolve  # noqa: F401
from .orchestrator import clone  # noqa: F401
from .reverse_deps import clone_reverse_deps, find_reverse_deps  # noqa: F401

__all__ = ["copy_tree", "resolve", "clone", "clone_reverse_deps", "find_reverse_deps"]

"""Package sources: local paths, git repositories, vendored directories and registries."""

from .models import GitReference, SourceLocation  # noqa: F401
from .base import LocalPackagesSource, Source  # noqa: F401
from .path import DirectorySource, PathSource  # noqa: F401
from .git import GitSource  # noqa: F401
from .registry import RegistrySource  # noqa: F401
from .config import SourceConfigMap  # noqa: F401

__all__ = [
    "GitReference",
    "SourceLocation",
    "Source",
    "LocalPackagesSource",
    "PathSource",
    "DirectorySource",
    "GitSource",
    "RegistrySource",
    "SourceConfigMap",
]

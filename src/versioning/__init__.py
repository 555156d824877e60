"""Version parsing, requirements and candidate selection."""

from .models import (
    CloneReport,
    PackageQuery,
    PackageSummary,
    ResolvedPackage,
    ReverseDependencyEntry,
)
from .parser import build_requirement, parse_version
from .selector import select_max

__all__ = [
    "CloneReport",
    "PackageQuery",
    "PackageSummary",
    "ResolvedPackage",
    "ReverseDependencyEntry",
    "build_requirement",
    "parse_version",
    "select_max",
]

"""Named source configuration with ``replace-with`` mirrors."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from constants import Constants, SourceKinds
from errors import SourceError

from .base import Source
from .models import SourceLocation
from .path import DirectorySource
from .registry import RegistrySource

logger = logging.getLogger(__name__)

SOURCE_KEYS = ("registry", "directory")


class SourceConfigMap:
    """Resolve registry names to concrete sources.

    Built from the ``sources`` section of the configuration file::

        sources:
          crates-io:
            replace-with: company-mirror
          company-mirror:
            registry: sparse+https://mirror.example.com/index/
    """

    def __init__(self, sources: Optional[Mapping[str, Any]] = None, home: Optional[Path] = None):
        self._sources: Dict[str, Dict[str, Any]] = {}
        for name, entry in (sources or {}).items():
            if not isinstance(entry, Mapping):
                raise SourceError(f"source `{name}` must be a mapping")
            self._sources[str(name)] = dict(entry)
        self.home = Path(home) if home is not None else None

    @classmethod
    def from_constants(cls, home: Optional[Path] = None) -> "SourceConfigMap":
        return cls(Constants.SOURCES, home=home)

    def names(self) -> List[str]:
        return sorted(self._sources)

    def _follow(self, name: str) -> str:
        """Follow ``replace-with`` links starting at ``name`` and return the final name."""
        chain = [name]
        current = name
        while True:
            entry = self._sources.get(current)
            if entry is None:
                return current
            target = entry.get("replace-with")
            if not target:
                return current
            target = str(target)
            if target in chain:
                cycle = " -> ".join(chain + [target])
                raise SourceError(f"detected a cycle of `replace-with` sources: {cycle}")
            chain.append(target)
            current = target

    def resolve_location(self, location: SourceLocation) -> SourceLocation:
        """Return the location that actually serves ``location``."""
        if not location.is_registry or location.url:
            return location
        original = location.name or Constants.CRATES_IO_NAME
        final = self._follow(original)
        if final != original:
            logger.info("Using `%s` in place of `%s`", final, original)
        entry = self._sources.get(final)
        if entry is None:
            if final == Constants.CRATES_IO_NAME:
                return SourceLocation.for_registry(final, Constants.CRATES_IO_INDEX)
            raise SourceError(f"could not find a configured source with the name `{final}`")

        present = [key for key in SOURCE_KEYS if entry.get(key)]
        if len(present) != 1:
            raise SourceError(
                f"source `{final}` must define exactly one of: {', '.join(SOURCE_KEYS)}"
            )
        if present[0] == "registry":
            return SourceLocation.for_registry(final, str(entry["registry"]))
        return SourceLocation.for_directory(str(entry["directory"]))

    def load(self, location: SourceLocation, home: Optional[Path] = None) -> Source:
        """Build the source for ``location`` after applying replacements.

        Raises:
            SourceError: For unknown names, replacement cycles or invalid entries.
        """
        home = Path(home) if home is not None else self.home
        resolved = self.resolve_location(location)
        if resolved.kind == SourceKinds.DIRECTORY:
            return DirectorySource(resolved)
        if resolved.kind == SourceKinds.REGISTRY:
            if home is None:
                raise SourceError("a home directory is required for registry sources")
            return RegistrySource(resolved, home)
        raise SourceError(f"{resolved} cannot be loaded as a named source")

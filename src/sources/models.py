"""Source locations: where package material comes from."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from constants import Constants, SourceKinds

GIT_REFERENCE_KINDS = ("branch", "tag", "rev")


@dataclass(frozen=True)
class GitReference:
    """A branch, tag or revision to check out from a git repository."""
    kind: str
    value: str

    def __post_init__(self) -> None:
        if self.kind not in GIT_REFERENCE_KINDS:
            raise ValueError(f"unknown git reference kind: {self.kind}")
        if not self.value:
            raise ValueError(f"empty git {self.kind}")

    def __str__(self) -> str:
        return f"{self.kind}={self.value}"


@dataclass(frozen=True)
class SourceLocation:
    """Tagged union over registry, git, path and directory sources.

    Use the ``for_*`` constructors rather than filling the fields by hand.
    """
    kind: SourceKinds
    name: Optional[str] = None
    url: Optional[str] = None
    path: Optional[Path] = None
    reference: Optional[GitReference] = None

    @classmethod
    def for_registry(cls, name: str = Constants.CRATES_IO_NAME,
                     index: Optional[str] = None) -> "SourceLocation":
        """A named registry, or an explicit index URL that bypasses source replacement."""
        return cls(kind=SourceKinds.REGISTRY, name=name, url=index)

    @classmethod
    def for_git(cls, url: str, reference: Optional[GitReference] = None) -> "SourceLocation":
        return cls(kind=SourceKinds.GIT, url=url, reference=reference)

    @classmethod
    def for_path(cls, path) -> "SourceLocation":
        return cls(kind=SourceKinds.PATH, path=Path(path).expanduser().resolve())

    @classmethod
    def for_directory(cls, path) -> "SourceLocation":
        return cls(kind=SourceKinds.DIRECTORY, path=Path(path).expanduser().resolve())

    @property
    def is_registry(self) -> bool:
        return self.kind == SourceKinds.REGISTRY

    def __str__(self) -> str:
        if self.kind == SourceKinds.REGISTRY:
            return f"registry `{self.url or self.name}`"
        if self.kind == SourceKinds.GIT:
            suffix = f"?{self.reference}" if self.reference else ""
            return f"git `{self.url}{suffix}`"
        return f"{self.kind.value} `{self.path}`"

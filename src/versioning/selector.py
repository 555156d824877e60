"""Pick the best candidate among package summaries."""

from typing import Iterable, Optional

from .models import PackageSummary


def select_max(summaries: Iterable[PackageSummary]) -> Optional[PackageSummary]:
    """Return the summary with the greatest semantic version.

    Ordering follows semver precedence (major, minor, patch, then pre-release).
    For equal versions the first one encountered wins. Returns None for an
    empty input, which callers treat as "not found".
    """
    best: Optional[PackageSummary] = None
    for summary in summaries:
        if best is None or summary.version > best.version:
            best = summary
    return best

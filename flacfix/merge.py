from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .meta_keys import DEFAULT_MERGE_TARGETS, MERGE_SEPARATOR, MUSICBRAINZ_PREFIX
from .models import CommentBlock


@dataclass(slots=True, frozen=True)
class MergeWarning:
    key: str
    count: int


@dataclass(slots=True)
class MergeResult:
    block: CommentBlock
    modified: bool = False
    warnings: List[MergeWarning] = field(default_factory=list)
    merged_keys: Dict[str, int] = field(default_factory=dict)


def normalize_targets(targets: Iterable[str]) -> List[str]:
    """Strip blanks and drop case-insensitive duplicates, keeping first spelling."""
    seen: set[str] = set()
    ordered: List[str] = []
    for raw in targets:
        key = raw.strip()
        if not key or key.upper() in seen:
            continue
        seen.add(key.upper())
        ordered.append(key)
    return ordered


def merge_comments(
    block: CommentBlock,
    targets: Sequence[str] = DEFAULT_MERGE_TARGETS,
    *,
    warn_prefix: str = MUSICBRAINZ_PREFIX,
) -> MergeResult:
    """Collapse repeated target tags into a single ``+``-joined entry.

    Non-target entries keep their order and are followed by one entry per
    target key that had a value. Values containing ``+`` are not escaped.
    """
    target_keys = normalize_targets(targets)
    by_upper = {key.upper(): key for key in target_keys}
    collected: Dict[str, List[str]] = {key: [] for key in target_keys}
    tracked: Dict[str, int] = {}
    passthrough: List[str] = []
    prefix = warn_prefix.upper()

    for entry in block.comments:
        name, sep, value = entry.partition("=")
        if not sep:
            passthrough.append(entry)
            continue
        upper = name.upper()
        target = by_upper.get(upper)
        if target is not None:
            collected[target].append(value)
            continue
        if prefix and upper.startswith(prefix):
            tracked[upper] = tracked.get(upper, 0) + 1
        passthrough.append(entry)

    warnings = [MergeWarning(key, count) for key, count in tracked.items() if count > 1]

    merged: Dict[str, int] = {}
    rebuilt = list(passthrough)
    for key in target_keys:
        values = collected[key]
        if not values:
            continue
        if len(values) > 1:
            merged[key] = len(values)
        rebuilt.append(f"{key}={MERGE_SEPARATOR.join(values)}")

    if not merged:
        return MergeResult(block=block, modified=False, warnings=warnings)
    return MergeResult(
        block=CommentBlock(vendor=block.vendor, comments=rebuilt),
        modified=True,
        warnings=warnings,
        merged_keys=merged,
    )

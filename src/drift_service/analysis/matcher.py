"""Pair discovered resources with the first baseline whose label filter matches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

ResourceT = TypeVar("ResourceT")
BaselineT = TypeVar("BaselineT")


def match_labels(labels: Optional[Mapping[str, str]], filter_labels: Optional[Mapping[str, str]]) -> bool:
    """Return ``True`` when every filter key is present in ``labels`` with an equal value.

    An empty or missing filter matches every resource.
    """

    if not filter_labels:
        return True
    if not labels:
        return False
    for key, value in filter_labels.items():
        if key not in labels or labels[key] != value:
            return False
    return True


def filter_by_labels(resources: Iterable[ResourceT], filter_labels: Optional[Mapping[str, str]]) -> List[ResourceT]:
    return [resource for resource in resources if match_labels(_labels_of(resource), filter_labels)]


@dataclass(slots=True)
class MatchResult(Generic[ResourceT, BaselineT]):
    pairs: List[Tuple[ResourceT, BaselineT]] = field(default_factory=list)
    unmatched: List[ResourceT] = field(default_factory=list)


def match_baselines(
    baselines: Sequence[BaselineT],
    resources: Sequence[ResourceT],
) -> MatchResult[ResourceT, BaselineT]:
    """Assign each resource to the first listed baseline that claims it.

    Baselines are walked in order and a resource already paired is skipped, so
    a resource never appears in more than one pair.
    """

    result: MatchResult[ResourceT, BaselineT] = MatchResult()
    claimed: set[str] = set()

    for baseline in baselines:
        filter_labels = getattr(baseline, "filter_labels", None)
        for resource in resources:
            key = _key_of(resource)
            if key in claimed:
                continue
            if match_labels(_labels_of(resource), filter_labels):
                claimed.add(key)
                result.pairs.append((resource, baseline))

    result.unmatched = [resource for resource in resources if _key_of(resource) not in claimed]
    return result


def _labels_of(resource: Any) -> Mapping[str, str]:
    return getattr(resource, "labels", None) or {}


def _key_of(resource: Any) -> str:
    key = getattr(resource, "key", None)
    if key:
        return str(key)
    return f"{getattr(resource, 'project', '')}/{getattr(resource, 'name', '')}"


__all__ = ["MatchResult", "filter_by_labels", "match_baselines", "match_labels"]

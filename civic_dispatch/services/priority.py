# civic_dispatch/services/priority.py
from collections import Counter
from typing import List, Optional, Sequence, Tuple

from civic_dispatch.core.config import settings
from civic_dispatch.schemas.issue import Issue, PrioritizedIssue, Priority

# reports sharing a cluster key at or above this count are High priority
CLUSTER_THRESHOLD = 3

ClusterKey = Tuple[float, float, str]


def cluster_key(issue: Issue, precision: Optional[int] = None) -> Optional[ClusterKey]:
    """(rounded lat, rounded lng, category); None when the location is unknown."""
    if issue.coordinates is None:
        return None
    p = settings.cluster_precision if precision is None else precision
    return (
        round(issue.coordinates.lat, p),
        round(issue.coordinates.lng, p),
        issue.issue_type,
    )


def cluster_counts(current_issues: Sequence[Issue], precision: Optional[int] = None) -> Counter:
    counts: Counter = Counter()
    for issue in current_issues:
        key = cluster_key(issue, precision)
        if key is not None:
            counts[key] += 1
    return counts


def classify(
    current_issues: Sequence[Issue],
    authority_name: str,
    precision: Optional[int] = None,
) -> List[PrioritizedIssue]:
    """
    Label the issues assigned to ``authority_name`` High or Normal and return
    them with every High issue ahead of every Normal one. Clusters are counted
    over the whole collection, not just this authority's share. Order inside
    each band is the collection order.
    """
    counts = cluster_counts(current_issues, precision)
    high: List[PrioritizedIssue] = []
    normal: List[PrioritizedIssue] = []
    for issue in current_issues:
        if issue.assigned_name != authority_name:
            continue
        key = cluster_key(issue, precision)
        is_high = key is not None and counts[key] >= CLUSTER_THRESHOLD
        labelled = PrioritizedIssue(
            **issue.model_dump(),
            priority=Priority.high if is_high else Priority.normal,
        )
        (high if is_high else normal).append(labelled)
    return high + normal

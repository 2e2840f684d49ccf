# civic_dispatch/services/dispatch.py
"""
Dispatch policies: bind a new report to exactly one authority.

Two policies exist. Category routing (the default) looks the category up in a
declarative table with an explicit ``"*"`` default entry. Least workload
picks the authority with the fewest assigned issues, ties going to the
earliest declared authority. Select one per deployment with DISPATCH_POLICY.
"""
import json
import logging
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from civic_dispatch.core.config import settings
from civic_dispatch.schemas.authority import Authority
from civic_dispatch.schemas.issue import Issue

logger = logging.getLogger(__name__)

# Declaration order is the least-workload tie-break order.
AUTHORITIES: List[Authority] = [
    Authority(key="roads", name="Rajesh (Roads)", phone="9876543210"),
    Authority(key="water", name="Priya (Water)", phone="9123456789"),
    Authority(key="sanitation", name="Amit (Sanitation)", phone="9988776655"),
]

DEFAULT_ROUTE = "*"

ROUTING_TABLE: Dict[str, str] = {
    "Pothole": "roads",
    "Street Light": "roads",
    "Traffic Signal": "roads",
    "Water Leakage": "water",
    "Sewage/Drainage": "water",
    "Garbage": "sanitation",
    "Public Park/Property": "sanitation",
    DEFAULT_ROUTE: "roads",
}


def get_authority(key_or_name: str) -> Optional[Authority]:
    for a in AUTHORITIES:
        if key_or_name in (a.key, a.name):
            return a
    return None


@lru_cache(maxsize=None)
def load_routing_table(path: Optional[str] = None) -> Dict[str, str]:
    """
    Read a ``{category: authority_key}`` JSON object. The file must name only
    known authorities and carry a ``"*"`` entry, else the built-in table is
    used.
    """
    if not path:
        return dict(ROUTING_TABLE)
    try:
        with open(path, encoding="utf-8") as fh:
            table = json.load(fh)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read routing table {path}: {e}; using built-in table")
        return dict(ROUTING_TABLE)
    if (
        not isinstance(table, dict)
        or DEFAULT_ROUTE not in table
        or any(not isinstance(v, str) or get_authority(v) is None for v in table.values())
    ):
        logger.error(f"Routing table {path} is missing a default or names an unknown authority; using built-in table")
        return dict(ROUTING_TABLE)
    return {str(k): v for k, v in table.items()}


class CategoryRoutingPolicy:
    name = "category"

    def __init__(self, table: Optional[Dict[str, str]] = None):
        self.table = table if table is not None else load_routing_table(settings.routing_table_path)

    def assign(self, category: str, current_issues: Sequence[Issue]) -> Authority:
        key = self.table.get(category)
        if key is None:
            logger.info(f"No route for category {category!r}; using default authority")
            key = self.table[DEFAULT_ROUTE]
        return get_authority(key) or AUTHORITIES[0]


class LeastWorkloadPolicy:
    name = "least_workload"

    def __init__(self, authorities: Optional[Sequence[Authority]] = None):
        self.authorities = list(authorities or AUTHORITIES)

    def workload(self, current_issues: Sequence[Issue]) -> Dict[str, int]:
        counts = {a.name: 0 for a in self.authorities}
        for issue in current_issues:
            if issue.assigned_name in counts:
                counts[issue.assigned_name] += 1
        return counts

    def assign(self, category: str, current_issues: Sequence[Issue]) -> Authority:
        counts = self.workload(current_issues)
        selected = self.authorities[0]
        for a in self.authorities:
            # strict comparison keeps the first-declared authority on ties
            if counts[a.name] < counts[selected.name]:
                selected = a
        return selected


POLICIES = {
    CategoryRoutingPolicy.name: CategoryRoutingPolicy,
    LeastWorkloadPolicy.name: LeastWorkloadPolicy,
}


def get_policy(name: Optional[str] = None):
    name = (name or settings.dispatch_policy or "").strip().lower()
    policy_cls = POLICIES.get(name)
    if policy_cls is None:
        logger.warning(f"Unknown dispatch policy {name!r}; falling back to category routing")
        policy_cls = CategoryRoutingPolicy
    return policy_cls()

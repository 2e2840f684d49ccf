# civic_dispatch/services/scoring.py
"""
Authority performance score.

Three bounded components are summed and clamped to 0-100:

- efficiency (max 40): share of assigned issues that are resolved
- public trust (max 40): upvote share of all votes, 20 when nobody voted
- responsiveness (max 20): 5 points per issue resolved within 24 hours

The label breakpoints are fixed: 90 and above is "Excellent", below 50 is
"Under Review", anything else is "Good". An authority with no issues gets the
"No Data" sentinel instead of an earned 0.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from civic_dispatch.schemas.authority import PerformanceScore
from civic_dispatch.schemas.issue import Issue

EFFICIENCY_MAX = 40.0
TRUST_MAX = 40.0
TRUST_NEUTRAL = 20.0
RESPONSIVENESS_MAX = 20.0
RESPONSIVENESS_STEP = 5.0
FAST_RESOLUTION_MS = 24 * 60 * 60 * 1000

EXCELLENT_AT = 90
UNDER_REVIEW_BELOW = 50

NO_DATA = PerformanceScore(value=0, label="No Data", star_rating="0.0", has_data=False)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def stars_for(value: int) -> str:
    return str((Decimal(value) / 20).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def label_for(value: int) -> str:
    if value >= EXCELLENT_AT:
        return "Excellent"
    if value < UNDER_REVIEW_BELOW:
        return "Under Review"
    return "Good"


def efficiency(issues: Sequence[Issue]) -> float:
    resolved = sum(1 for i in issues if i.is_resolved)
    return resolved / len(issues) * EFFICIENCY_MAX


def public_trust(issues: Sequence[Issue]) -> float:
    up = sum(i.upvotes for i in issues)
    down = sum(i.downvotes for i in issues)
    if up + down == 0:
        return TRUST_NEUTRAL
    return up / (up + down) * TRUST_MAX


def responsiveness(issues: Sequence[Issue]) -> float:
    points = 0.0
    for i in issues:
        if i.is_resolved and i.resolved_at - i.created_at < FAST_RESOLUTION_MS:
            points = min(points + RESPONSIVENESS_STEP, RESPONSIVENESS_MAX)
    return points


def score(issues_for_authority: Sequence[Issue]) -> PerformanceScore:
    if not issues_for_authority:
        return NO_DATA
    eff = efficiency(issues_for_authority)
    trust = public_trust(issues_for_authority)
    resp = responsiveness(issues_for_authority)
    value = _round_half_up(min(max(eff + trust + resp, 0.0), 100.0))
    return PerformanceScore(
        value=value,
        label=label_for(value),
        star_rating=stars_for(value),
        efficiency=round(eff, 2),
        trust=round(trust, 2),
        responsiveness=resp,
    )

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_WHOLE_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


def round_half_up(value: Decimal) -> int:
    """Round to whole currency units, halves away from zero."""
    return int(value.quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True, slots=True)
class PolicyTerms:
    """The numeric part of a commission policy: two thresholds, three percents.

    Built either from the live policy (sync) or from the snapshot stored on a
    record (recalculation), so the calculator never knows which one it got.
    """

    standard_target: int
    advanced_target: int
    tier1_percent: Decimal
    tier2_percent: Decimal
    tier3_percent: Decimal

    @classmethod
    def from_policy(cls, policy) -> PolicyTerms:
        return cls(
            standard_target=int(policy.standard_target),
            advanced_target=int(policy.advanced_target),
            tier1_percent=Decimal(policy.tier1_percent),
            tier2_percent=Decimal(policy.tier2_percent),
            tier3_percent=Decimal(policy.tier3_percent),
        )

    @classmethod
    def from_snapshot(cls, record) -> PolicyTerms:
        return cls(
            standard_target=int(record.snap_standard_target),
            advanced_target=int(record.snap_advanced_target),
            tier1_percent=Decimal(record.snap_tier1_percent),
            tier2_percent=Decimal(record.snap_tier2_percent),
            tier3_percent=Decimal(record.snap_tier3_percent),
        )

    def snapshot_fields(self) -> dict:
        """Column values for freezing these terms onto a record."""
        return {
            "snap_standard_target": self.standard_target,
            "snap_advanced_target": self.advanced_target,
            "snap_tier1_percent": self.tier1_percent,
            "snap_tier2_percent": self.tier2_percent,
            "snap_tier3_percent": self.tier3_percent,
        }


@dataclass(frozen=True, slots=True)
class TierBreakdown:
    tier1_revenue: int
    tier2_revenue: int
    tier3_revenue: int
    tier1_commission: int
    tier2_commission: int
    tier3_commission: int
    total_commission: int

    def as_fields(self) -> dict:
        return {
            "tier1_revenue": self.tier1_revenue,
            "tier2_revenue": self.tier2_revenue,
            "tier3_revenue": self.tier3_revenue,
            "tier1_commission": self.tier1_commission,
            "tier2_commission": self.tier2_commission,
            "tier3_commission": self.tier3_commission,
            "total_commission": self.total_commission,
        }


def compute_commission(
    actual_revenue: int, manual_adjustment: int, terms: PolicyTerms
) -> TierBreakdown:
    """Split effective revenue over three progressive tiers and price each one.

    Semantics:
    - effective = max(0, actual_revenue + manual_adjustment)
    - tier 1 takes up to standard_target
    - tier 2 takes up to (advanced_target - standard_target), never negative
    - tier 3 takes whatever is left, unbounded
    - each tier commission is rounded half-up to whole units *before* summing,
      so total_commission is always the sum of the three tier commissions

    Negative or inverted targets are clamped instead of rejected: a negative
    standard target yields an empty tier 1, an advanced target below the
    standard one yields an empty tier 2.
    """
    effective = max(0, actual_revenue + manual_adjustment)

    tier1_revenue = min(effective, max(0, terms.standard_target))
    remaining = max(0, effective - tier1_revenue)

    tier2_range = max(0, terms.advanced_target - terms.standard_target)
    tier2_revenue = min(remaining, tier2_range)
    remaining = max(0, remaining - tier2_revenue)

    tier3_revenue = remaining

    tier1_commission = round_half_up(Decimal(tier1_revenue) * terms.tier1_percent / _HUNDRED)
    tier2_commission = round_half_up(Decimal(tier2_revenue) * terms.tier2_percent / _HUNDRED)
    tier3_commission = round_half_up(Decimal(tier3_revenue) * terms.tier3_percent / _HUNDRED)

    return TierBreakdown(
        tier1_revenue=tier1_revenue,
        tier2_revenue=tier2_revenue,
        tier3_revenue=tier3_revenue,
        tier1_commission=tier1_commission,
        tier2_commission=tier2_commission,
        tier3_commission=tier3_commission,
        total_commission=tier1_commission + tier2_commission + tier3_commission,
    )

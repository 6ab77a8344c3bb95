from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from ..common.money import round_half_up
from ..common.validators import require_amount
from ..core.constants import DEFAULT_ABSENCE_AMOUNT, DEFAULT_LATENESS_AMOUNT
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class PackageRate:
    absence_amount: Decimal
    lateness_amount: Decimal


@dataclass(frozen=True)
class RateTable:
    """Per-package base amounts with fallback defaults for unknown packages."""

    rates: Mapping[str, PackageRate] = field(default_factory=dict)
    default_absence: Decimal = DEFAULT_ABSENCE_AMOUNT
    default_lateness: Decimal = DEFAULT_LATENESS_AMOUNT

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Any]],
        *,
        default_absence: Decimal = DEFAULT_ABSENCE_AMOUNT,
        default_lateness: Decimal = DEFAULT_LATENESS_AMOUNT,
    ) -> "RateTable":
        rates: dict[str, PackageRate] = {}
        for r in rows:
            name = str(r["package_name"])
            rates[name] = PackageRate(
                absence_amount=require_amount(r["absence_amount"], f"Mức khấu trừ vắng ({name})"),
                lateness_amount=require_amount(r["lateness_amount"], f"Mức khấu trừ đi muộn ({name})"),
            )
        return cls(rates=rates, default_absence=Decimal(default_absence), default_lateness=Decimal(default_lateness))

    def absence_for(self, package: Optional[str]) -> Decimal:
        rate = self.rates.get(package or "")
        # A zero configured amount falls back to the default as well.
        if rate is None or not rate.absence_amount:
            return self.default_absence
        return rate.absence_amount

    def lateness_for(self, package: Optional[str]) -> Decimal:
        rate = self.rates.get(package or "")
        if rate is None or not rate.lateness_amount:
            return self.default_lateness
        return rate.lateness_amount


@dataclass(frozen=True)
class LatenessTier:
    start_minute: int
    end_minute: int
    percent: Decimal

    def contains(self, minutes: int) -> bool:
        return self.start_minute <= minutes <= self.end_minute


@dataclass(frozen=True)
class TierMatch:
    index: int
    tier: LatenessTier
    amount: Decimal


@dataclass(frozen=True)
class LatenessPolicy:
    """Ordered lateness tiers plus the excused threshold.

    Lateness at or below the threshold is never deducted. Tiers are kept in
    ascending start order; the first tier containing the minutes wins.
    """

    excused_threshold_minutes: int
    tiers: tuple[LatenessTier, ...]

    def __post_init__(self):
        if self.excused_threshold_minutes < 0:
            raise ValidationError("Ngưỡng miễn trừ đi muộn không hợp lệ")
        for t in self.tiers:
            if t.start_minute < 0 or t.end_minute < t.start_minute:
                raise ValidationError(f"Khoảng phút không hợp lệ: {t.start_minute}-{t.end_minute}")
            if t.percent < 0 or t.percent > 100:
                raise ValidationError(f"Tỷ lệ khấu trừ không hợp lệ: {t.percent}")
        ordered = tuple(sorted(self.tiers, key=lambda t: t.start_minute))
        object.__setattr__(self, "tiers", ordered)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> Optional["LatenessPolicy"]:
        """Build from config rows; each row carries its own threshold, the smallest applies.

        Returns None when the school has no tiers configured.
        """
        rows = list(rows)
        if not rows:
            return None
        try:
            tiers = tuple(
                LatenessTier(
                    start_minute=int(r["start_minute"]),
                    end_minute=int(r["end_minute"]),
                    percent=Decimal(str(r["percent"])),
                )
                for r in rows
            )
            threshold = min(int(r.get("excused_threshold") or 0) for r in rows)
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise ValidationError(f"Cấu hình đi muộn không hợp lệ: {e}")
        return cls(excused_threshold_minutes=threshold, tiers=tiers)

    def is_excused(self, minutes: int) -> bool:
        return minutes <= self.excused_threshold_minutes

    def match(self, minutes: int, base_amount: Decimal) -> Optional[TierMatch]:
        for i, tier in enumerate(self.tiers):
            if tier.contains(minutes):
                amount = round_half_up(Decimal(base_amount) * tier.percent / Decimal(100))
                return TierMatch(index=i, tier=tier, amount=amount)
        return None

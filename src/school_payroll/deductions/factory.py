from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import DeductionKind
from .calculator.absence_calculator import AbsenceCalculator
from .calculator.base import DeductionCalculator
from .calculator.lateness_calculator import LatenessCalculator


@dataclass
class DeductionCalculatorFactory:
    """Factory Pattern: choose the calculator for a deduction kind."""

    def for_kind(self, kind: DeductionKind) -> DeductionCalculator:
        kind = DeductionKind(kind)
        if kind == DeductionKind.ABSENCE:
            return AbsenceCalculator()
        return LatenessCalculator()

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...core.context import EvaluationContext
from ...core.enums import DeductionKind
from ...roster.model import Student, Teacher
from ..model import DeductionInputs, DeductionLineItem, DeductionRequest


class DeductionCalculator(ABC):
    """Calculator interface (Strategy Pattern for deduction kinds).

    Implementations are pure over their inputs: the same arguments always
    produce the same line items in the same order.
    """

    kind: DeductionKind

    @abstractmethod
    def calculate(
        self,
        *,
        teacher: Teacher,
        students: Sequence[Student],
        inputs: DeductionInputs,
        request: DeductionRequest,
        context: EvaluationContext,
    ) -> list[DeductionLineItem]:
        raise NotImplementedError

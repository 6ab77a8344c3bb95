from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..core.exceptions import ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def _parse_date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    try:
        return parse_iso_date(str(value)[:10])
    except ValueError:
        raise ValidationError("Định dạng ngày không hợp lệ (YYYY-MM-DD)")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/<int:school_id>/deductions/preview", methods=["POST"], endpoint="deductions_preview")
    def deductions_preview(school_id: int):
        """Itemized absence/lateness preview; nothing is persisted."""
        data = request.get_json(silent=True) or {}
        date_range = data.get("date_range") or {}

        kinds = data.get("kinds")
        if not kinds and data.get("adjustment_type"):
            kinds = [data["adjustment_type"]]

        try:
            preview = container.deduction_preview_service.preview(
                school_id=school_id,
                start=_parse_date(date_range.get("start_date")),
                end=_parse_date(date_range.get("end_date")),
                teacher_ids=data.get("teacher_ids"),
                kinds=kinds,
                time_slots=data.get("time_slots"),
            )
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("deduction preview failed school=%s", school_id)
            return jsonify({"error": "Lỗi hệ thống khi tính khấu trừ"}), 500

        return jsonify(preview.to_dict())

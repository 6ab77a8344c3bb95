from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..core.exceptions import ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/subscriptions/<int:subscription_id>/upgrade/quote", methods=["POST"], endpoint="upgrade_quote")
    def upgrade_quote(subscription_id: int):
        """Proration amounts and the new cycle for an upgrade; no charge is created."""
        data = request.get_json(silent=True) or {}
        try:
            quote = container.subscription_upgrade_service.quote_by_id(
                subscription_id=subscription_id,
                new_package_id=data.get("new_package_id"),
            )
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("upgrade quote failed subscription=%s", subscription_id)
            return jsonify({"error": "Lỗi hệ thống khi tính nâng cấp gói"}), 500

        return jsonify(quote.to_dict())

"""JSON API exposing the mortgage calculator.

The front end posts its current input snapshot and renders whatever comes
back; no state is kept between requests.
"""

import os
from typing import Optional

from flask import Flask, jsonify, request

from mortgage_calc.config import FormulaConstants, load_constants
from mortgage_calc.data_models import MortgageInput, PropertyCategory
from mortgage_calc.engine import recalculate
from mortgage_calc.exceptions import InvalidInputError
from mortgage_calc.fees import fee_breakdown, notary_fee_details
from mortgage_calc.logging import get_logger, setup_logging
from mortgage_calc.utils import require_mapping, require_non_negative

logger = get_logger(__name__)


def create_app(constants: Optional[FormulaConstants] = None) -> Flask:
    """Build the flask application.

    Formula constants default to the file named by ``MORTGAGE_CALC_CONSTANTS``
    when that variable is set.
    """
    app = Flask(__name__)
    app.config["CONSTANTS"] = constants if constants is not None else FormulaConstants.from_env()

    @app.errorhandler(InvalidInputError)
    def handle_invalid_input(exc: InvalidInputError):
        return jsonify({"error": str(exc)}), 400

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/api/simulate")
    def simulate():
        payload = request.get_json(silent=True)
        if payload is None:
            raise InvalidInputError("Request body must be a JSON object")
        snapshot = MortgageInput.from_dict(payload)
        logger.debug("Simulation requested for price %.2f", snapshot.property_price)
        result = recalculate(snapshot, app.config["CONSTANTS"])
        return jsonify(result.to_dict())

    @app.post("/api/fees")
    def fees():
        payload = request.get_json(silent=True)
        payload = require_mapping("Request body", {} if payload is None else payload)
        price = require_non_negative("price", payload.get("price", 0))
        loan = require_non_negative("loan", payload.get("loan", 0))
        dossier_fee = require_non_negative("dossier_fee", payload.get("dossier_fee", 0))
        try:
            category = PropertyCategory(str(payload.get("property_category", "old")).lower())
        except ValueError as exc:
            raise InvalidInputError("property_category must be 'new' or 'old'") from exc
        constants = app.config["CONSTANTS"]
        breakdown = fee_breakdown(price, loan, category, dossier_fee, constants=constants)
        details = notary_fee_details(price, category, constants=constants)
        return jsonify({"fees": breakdown.to_dict(), "notary": details.to_dict()})

    return app


if __name__ == "__main__":
    setup_logging(os.environ.get("LOG_LEVEL", "INFO"))
    constants_path = os.environ.get("MORTGAGE_CALC_CONSTANTS")
    app = create_app(load_constants(constants_path) if constants_path else None)
    print("Starting mortgage calculator API...")
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "8710")), debug=False)

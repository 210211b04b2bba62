"""Flask JSON API for the fleet document tracker."""

import logging
import os
from typing import Optional

from flask import Flask, jsonify, request

from fleetdocs import (
    DuplicateKey,
    FleetService,
    NotFound,
    StorageFailure,
    ValidationFailure,
    documents_needing_attention,
    fleet_summary,
)
from fleetdocs.config import Settings, load_settings, make_service
from fleetdocs.loader import document_to_dict, history_log_to_dict, vehicle_to_dict
from fleetdocs.logger import configure_logging

logger = logging.getLogger(__name__)


def vehicle_json(vehicle) -> dict:
    """Vehicle with documents, plus its status derived fresh for this request."""
    data = vehicle_to_dict(vehicle)
    data["status"] = vehicle.status().name.lower()
    return data


def history_json(entries) -> list:
    return [history_log_to_dict(e) for e in entries]


def create_app(service: Optional[FleetService] = None) -> Flask:
    """Build the app around the given service (default: configured from env)."""
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", Settings.secret_key)
    if service is None:
        service = make_service(load_settings())
    app.config["FLEET_SERVICE"] = service

    def fleet() -> FleetService:
        return app.config["FLEET_SERVICE"]

    # -- error handling -------------------------------------------------------

    @app.errorhandler(ValidationFailure)
    def handle_validation(e: ValidationFailure):
        return jsonify({"error": "invalid_body", "details": e.errors}), 400

    @app.errorhandler(NotFound)
    def handle_not_found(e: NotFound):
        return jsonify({"error": f"{e.entity}_not_found"}), 404

    @app.errorhandler(DuplicateKey)
    def handle_duplicate(e: DuplicateKey):
        return jsonify({"error": "license_plate_already_exists"}), 409

    @app.errorhandler(StorageFailure)
    def handle_storage(e: StorageFailure):
        logger.exception("Storage failure: %s", e)
        return jsonify({"error": "internal_error"}), 500

    # -- routes ---------------------------------------------------------------

    @app.route("/health")
    def health():
        return jsonify({"ok": True})

    @app.route("/api/vehicles", methods=["GET"])
    def list_vehicles():
        vehicles = fleet().list_vehicles()
        summary = fleet_summary(vehicles)
        return jsonify(
            {
                "vehicles": [vehicle_json(v) for v in vehicles],
                "summary": {
                    "total": summary.total,
                    "red": summary.red,
                    "yellow": summary.yellow,
                    "green": summary.green,
                    "untracked": summary.untracked,
                },
            }
        )

    @app.route("/api/vehicles", methods=["POST"])
    def create_vehicle():
        result = fleet().create_vehicle(request.get_json(silent=True))
        return (
            jsonify(
                {
                    "vehicle": vehicle_json(result.vehicle),
                    "historyLogs": history_json(result.history_logs),
                }
            ),
            201,
        )

    @app.route("/api/vehicles/<vehicle_id>", methods=["PATCH"])
    def update_vehicle(vehicle_id: str):
        result = fleet().update_vehicle(vehicle_id, request.get_json(silent=True))
        return jsonify(
            {
                "vehicle": vehicle_json(result.vehicle),
                "historyLogs": history_json(result.history_logs),
            }
        )

    @app.route("/api/vehicles/<vehicle_id>", methods=["DELETE"])
    def delete_vehicle(vehicle_id: str):
        result = fleet().delete_vehicle(vehicle_id)
        return jsonify(
            {
                "ok": True,
                "vehicle": vehicle_to_dict(result.vehicle),
                "historyLogs": history_json(result.history_logs),
            }
        )

    @app.route("/api/vehicles/<vehicle_id>/documents", methods=["POST"])
    def add_document(vehicle_id: str):
        result = fleet().add_document(vehicle_id, request.get_json(silent=True))
        return (
            jsonify(
                {
                    "vehicle": vehicle_json(result.vehicle),
                    "document": document_to_dict(result.document),
                    "historyLogs": history_json(result.history_logs),
                }
            ),
            201,
        )

    @app.route("/api/vehicles/<vehicle_id>/documents/<document_id>", methods=["PATCH"])
    def update_document(vehicle_id: str, document_id: str):
        result = fleet().update_document(
            vehicle_id, document_id, request.get_json(silent=True)
        )
        return jsonify(
            {
                "vehicle": vehicle_json(result.vehicle),
                "document": document_to_dict(result.document),
                "historyLogs": history_json(result.history_logs),
            }
        )

    @app.route("/api/vehicles/<vehicle_id>/documents/<document_id>", methods=["DELETE"])
    def delete_document(vehicle_id: str, document_id: str):
        result = fleet().delete_document(vehicle_id, document_id)
        return jsonify(
            {
                "vehicle": vehicle_json(result.vehicle),
                "document": document_to_dict(result.document),
                "historyLogs": history_json(result.history_logs),
            }
        )

    @app.route("/api/documents/attention")
    def documents_attention():
        alerts = documents_needing_attention(fleet().list_vehicles())
        return jsonify(
            {
                "documents": [
                    {
                        "vehicleId": a.vehicle.id,
                        "vehicleName": a.vehicle.display_name,
                        "status": a.status.name.lower(),
                        "daysUntil": a.days_until,
                        "document": document_to_dict(a.document),
                    }
                    for a in alerts
                ]
            }
        )

    @app.route("/api/history")
    def list_history():
        # Unusable limits fall back to the default instead of failing
        limit = request.args.get("limit", type=int)
        if limit is not None and limit < 1:
            limit = None
        return jsonify({"history": history_json(fleet().list_history(limit))})

    return app


if __name__ == "__main__":
    settings = load_settings()
    configure_logging(settings.log_level)
    # Access from phone: use your computer's local IP (e.g., 192.168.1.x:5001)
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app(make_service(settings)).run(debug=True, host="0.0.0.0", port=settings.port)

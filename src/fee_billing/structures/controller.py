from __future__ import annotations

from flask import Flask

from ..billing.normalization import structure_to_record
from ..common.pagination import normalize_pagination
from ..common.responses import api_errors, json_body, ok, ok_page, query_int
from ..container import Container
from ..core.enums import StructureStatus
from ..core.exceptions import NotFoundError, ValidationError


def _status(body: dict) -> StructureStatus:
    try:
        return StructureStatus.parse(body.get("status"))
    except ValueError as exc:
        raise ValidationError("Invalid structure status") from exc


def register(app: Flask, container: Container) -> None:
    service = container.structure_service

    @app.route("/api/fee-structures", methods=["GET"], endpoint="api_fee_structures_list")
    @api_errors
    def list_structures():
        params = normalize_pagination(query_int("page"), query_int("limit"))
        page = service.list(page=params.page, limit=params.limit)
        return ok_page(page, params, structure_to_record)

    @app.route("/api/fee-structures", methods=["POST"], endpoint="api_fee_structures_create")
    @api_errors
    def save_structure():
        body = json_body()
        structure = service.save(
            class_id=body.get("classId"),
            class_name=body.get("className"),
            recurring_items=body.get("recurringItems"),
            one_time_items=body.get("oneTimeItems"),
            status=_status(body),
        )
        return ok(structure_to_record(structure), status=201)

    @app.route("/api/fee-structures/<int:structure_id>", methods=["GET"], endpoint="api_fee_structures_get")
    @api_errors
    def get_structure(structure_id: int):
        return ok(structure_to_record(service.get(structure_id)))

    @app.route("/api/fee-structures/class/<path:class_id>", methods=["GET"], endpoint="api_fee_structures_by_class")
    @api_errors
    def get_by_class(class_id: str):
        structure = service.get_by_class(class_id)
        if structure is None:
            raise NotFoundError("No fee structure for this class")
        return ok(structure_to_record(structure))

    @app.route("/api/fee-structures/<int:structure_id>", methods=["PUT"], endpoint="api_fee_structures_update")
    @api_errors
    def update_structure(structure_id: int):
        body = json_body()
        current = service.get(structure_id)
        if "recurringItems" in body or "oneTimeItems" in body:
            record = structure_to_record(current)
            current = service.replace_items(
                structure_id,
                recurring_items=body.get("recurringItems", record["recurringItems"]),
                one_time_items=body.get("oneTimeItems", record["oneTimeItems"]),
            )
        if body.get("status"):
            current = service.set_status(structure_id, _status(body))
        return ok(structure_to_record(current))

    @app.route("/api/fee-structures/<int:structure_id>/items", methods=["PATCH"], endpoint="api_fee_structures_items")
    @api_errors
    def replace_items(structure_id: int):
        body = json_body()
        structure = service.replace_items(
            structure_id,
            recurring_items=body.get("recurringItems") or [],
            one_time_items=body.get("oneTimeItems") or [],
        )
        return ok(structure_to_record(structure))

    @app.route("/api/fee-structures/<int:structure_id>", methods=["DELETE"], endpoint="api_fee_structures_delete")
    @api_errors
    def delete_structure(structure_id: int):
        service.delete(structure_id)
        return ok(None, message="Fee structure deleted")

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import quote

import requests

from ..common.datetime_utils import format_iso_date
from ..common.money import to_wire
from ..common.pagination import Page, PageParams
from ..core.constants import DEFAULT_API_BASE_URL, DEFAULT_API_TIMEOUT, GENERIC_ERROR_MESSAGE
from ..core.exceptions import GatewayError, NotFoundError
from ..structures.model import FeeItem, FeeStructure
from .model import BillFilters, FeeBill
from .normalization import bill_to_record, item_to_record, normalize_bill, normalize_structure, structure_to_record

logger = logging.getLogger(__name__)


def build_query(params: Mapping[str, Any]) -> dict[str, str]:
    """Flatten one level of nesting: ``{"dateRange": {"start": x}}`` -> ``{"dateRange[start]": x}``.

    Empty values are dropped.
    """

    out: dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, Mapping):
            for sub_key, sub_value in value.items():
                if sub_value is not None and sub_value != "":
                    out[f"{key}[{sub_key}]"] = str(sub_value)
        else:
            out[key] = str(value)
    return out


def filters_to_query(filters: BillFilters) -> dict[str, Any]:
    query: dict[str, Any] = {
        "status": filters.status.value if filters.status else None,
        "studentId": filters.student_id,
        "classId": filters.class_id,
    }
    if filters.start or filters.end:
        query["dateRange"] = {"start": format_iso_date(filters.start), "end": format_iso_date(filters.end)}
    return query


def error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return GENERIC_ERROR_MESSAGE
    if not isinstance(body, Mapping):
        return GENERIC_ERROR_MESSAGE
    return str(body.get("error") or body.get("message") or GENERIC_ERROR_MESSAGE)


class HttpFeeGateway:
    """JSON-over-HTTP persistence gateway for fee structures and bills.

    Implements both FeeStructureRepository and FeeBillRepository against a
    remote API. Every non-success response becomes a GatewayError (404 ->
    NotFoundError) carrying the server's message.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        token: Optional[str] = None,
        timeout: float = DEFAULT_API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if token:
            self._session.headers.update({"Authorization": f"Bearer {token}"})

    def _request(self, method: str, path: str, *, params: Optional[Mapping[str, Any]] = None, json: Any = None) -> dict:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                params=build_query(params or {}),
                json=json,
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.exception("Network error calling %s %s", method, url)
            raise GatewayError(GENERIC_ERROR_MESSAGE) from exc

        if not response.ok:
            message = error_message(response)
            logger.error("%s %s failed. Status: %s, Message: %s", method, url, response.status_code, message)
            if response.status_code == 404:
                raise NotFoundError(message)
            raise GatewayError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayError(GENERIC_ERROR_MESSAGE, status_code=response.status_code) from exc
        return body if isinstance(body, dict) else {"data": body}

    @staticmethod
    def _page(body: dict, normalize) -> Page:
        data = tuple(normalize(r) for r in body.get("data") or [])
        pagination = body.get("pagination") or {}
        total = pagination.get("total")
        return Page(data=data, total=int(total) if total is not None else None)

    @staticmethod
    def _payload(record: dict) -> dict:
        record = dict(record)
        record.pop("id", None)
        return record

    # --- fee structures -------------------------------------------------

    def list_structures(self, params: PageParams) -> Page[FeeStructure]:
        body = self._request("GET", "/fee-structures", params={"page": params.page, "limit": params.limit})
        return self._page(body, normalize_structure)

    def get_by_id(self, structure_id: int) -> Optional[FeeStructure]:
        try:
            body = self._request("GET", f"/fee-structures/{int(structure_id)}")
        except NotFoundError:
            return None
        return normalize_structure(body["data"]) if body.get("data") else None

    def get_by_class(self, class_id: str) -> Optional[FeeStructure]:
        try:
            body = self._request("GET", f"/fee-structures/class/{quote(str(class_id), safe='')}")
        except NotFoundError:
            return None
        return normalize_structure(body["data"]) if body.get("data") else None

    def create(self, structure: FeeStructure) -> FeeStructure:
        body = self._request("POST", "/fee-structures", json=self._payload(structure_to_record(structure)))
        return normalize_structure(body.get("data") or structure_to_record(structure))

    def update(self, structure: FeeStructure) -> FeeStructure:
        record = structure_to_record(structure)
        body = self._request("PUT", f"/fee-structures/{structure.structure_id}", json=self._payload(record))
        return normalize_structure(body.get("data") or record)

    def update_items(
        self,
        structure_id: int,
        *,
        recurring_items: Sequence[FeeItem],
        one_time_items: Sequence[FeeItem],
    ) -> FeeStructure:
        body = self._request(
            "PATCH",
            f"/fee-structures/{int(structure_id)}/items",
            json={
                "recurringItems": [item_to_record(i) for i in recurring_items],
                "oneTimeItems": [item_to_record(i) for i in one_time_items],
            },
        )
        if not body.get("data"):
            raise GatewayError(GENERIC_ERROR_MESSAGE)
        return normalize_structure(body["data"])

    def delete(self, structure_id: int) -> None:
        self._request("DELETE", f"/fee-structures/{int(structure_id)}")

    # --- fee bills --------------------------------------------------------

    def list_bills(self, filters: BillFilters, params: PageParams) -> Page[FeeBill]:
        query = filters_to_query(filters)
        query.update(page=params.page, limit=params.limit)
        return self._page(self._request("GET", "/fee-bills", params=query), normalize_bill)

    def get_bill(self, bill_id: int) -> Optional[FeeBill]:
        try:
            body = self._request("GET", f"/fee-bills/{int(bill_id)}")
        except NotFoundError:
            return None
        return normalize_bill(body["data"]) if body.get("data") else None

    def list_for_student(self, student_id: int) -> Sequence[FeeBill]:
        body = self._request("GET", f"/fee-bills/student/{int(student_id)}")
        return [normalize_bill(r) for r in body.get("data") or []]

    def create_bill(self, bill: FeeBill) -> FeeBill:
        body = self._request("POST", "/fee-bills", json=self._payload(bill_to_record(bill)))
        return normalize_bill(body.get("data") or bill_to_record(bill))

    def update_bill(self, bill_id: int, bill: FeeBill) -> FeeBill:
        record = bill_to_record(bill)
        body = self._request("PUT", f"/fee-bills/{int(bill_id)}", json=self._payload(record))
        return normalize_bill(body.get("data") or {**record, "id": int(bill_id)})

    def delete_bill(self, bill_id: int) -> None:
        self._request("DELETE", f"/fee-bills/{int(bill_id)}")

    def record_payment(self, bill_id: int, payment_amount: Decimal) -> FeeBill:
        # The API takes the new cumulative paid amount, not the increment.
        current = self.get_bill(bill_id)
        if current is None:
            raise NotFoundError("Fee bill not found")
        body = self._request(
            "PATCH",
            f"/fee-bills/{int(bill_id)}/payment",
            json={"paymentAmount": to_wire(current.paid_amount + payment_amount)},
        )
        if not body.get("data"):
            raise GatewayError(GENERIC_ERROR_MESSAGE)
        return normalize_bill(body["data"])

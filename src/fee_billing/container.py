from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from .billing.http_gateway import HttpFeeGateway
from .billing.mysql_bill_repository import MySQLFeeBillRepository
from .billing.repository import FeeBillRepository
from .billing.service import FeeBillingService
from .common.datetime_utils import today_local
from .core.constants import CURRENCY_LABEL, DEFAULT_API_BASE_URL, DEFAULT_API_TIMEOUT
from .database.connection import DatabaseConnection, DBConfig
from .reports.service import FeeReportService
from .structures.mysql_structure_repository import MySQLFeeStructureRepository
from .structures.repository import FeeStructureRepository
from .structures.service import FeeStructureService


@dataclass(frozen=True)
class Container:
    structures_repo: FeeStructureRepository
    bills_repo: FeeBillRepository

    structure_service: FeeStructureService
    billing_service: FeeBillingService
    report_service: FeeReportService

    currency_label: str = CURRENCY_LABEL


def wire(
    structures_repo: FeeStructureRepository,
    bills_repo: FeeBillRepository,
    *,
    today: Callable[[], date] = today_local,
    currency_label: str = CURRENCY_LABEL,
) -> Container:
    billing_service = FeeBillingService(bills_repo, structures_repo, today=today)
    return Container(
        structures_repo=structures_repo,
        bills_repo=bills_repo,
        structure_service=FeeStructureService(structures_repo),
        billing_service=billing_service,
        report_service=FeeReportService(billing_service.bills),
        currency_label=currency_label,
    )


def build_container(
    *,
    db_config: Optional[dict] = None,
    gateway: str = "mysql",
    api_base_url: str = DEFAULT_API_BASE_URL,
    api_token: Optional[str] = None,
    api_timeout: float = DEFAULT_API_TIMEOUT,
    currency_label: str = CURRENCY_LABEL,
) -> Container:
    if gateway == "http":
        remote = HttpFeeGateway(api_base_url, token=api_token, timeout=api_timeout)
        return wire(remote, remote, currency_label=currency_label)

    if gateway != "mysql":
        raise ValueError(f"Unknown gateway: {gateway!r}")
    if db_config is None:
        raise ValueError("db_config is required for the mysql gateway")

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        MySQLFeeStructureRepository(conn),
        MySQLFeeBillRepository(conn),
        currency_label=currency_label,
    )

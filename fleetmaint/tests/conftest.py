"""Shared test fixtures."""
import os
import tempfile

# 测试库放在临时目录，必须在 import fleetmaint 之前设置
_TMP_DIR = tempfile.mkdtemp(prefix="fleetmaint-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test_fleet_maint.db')}"
os.environ.setdefault("LOG_DIR", os.path.join(_TMP_DIR, "logs"))

from datetime import date
from decimal import Decimal

import pytest

from fleetmaint.db.base import Base
from fleetmaint.db.session import get_engine, get_session
from fleetmaint.db.auto_init import auto_init
from fleetmaint.services.audit_log_service import AuditLogService
from fleetmaint.services.part_service import PartService
from fleetmaint.services.service_note_service import ServiceNoteService
from fleetmaint.services.service_order_part_service import ServiceOrderPartService
from fleetmaint.services.part_usage_reconciler import PartCartItem


@pytest.fixture(scope="session", autouse=True)
def _schema():
    auto_init()
    yield


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with get_engine().begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def audit_log_service(db):
    return AuditLogService(db)


@pytest.fixture
def part_service(db, audit_log_service):
    return PartService(db, audit_log_service)


@pytest.fixture
def service_note_service(db, audit_log_service):
    return ServiceNoteService(db, audit_log_service)


@pytest.fixture
def service(db, audit_log_service):
    return ServiceOrderPartService(db, audit_log_service)


@pytest.fixture
def parts(part_service):
    """Three inventory parts keyed by sku."""
    created = [
        part_service.create_part(sku="BRK-001", name="Brake pad", unit_cost=Decimal("45.90"),
                                 quantity=10, min_stock=4, operator_id="tester"),
        part_service.create_part(sku="OIL-010", name="Oil filter", unit_cost=Decimal("18.50"),
                                 quantity=3, min_stock=5, operator_id="tester"),
        part_service.create_part(sku="SPK-100", name="Spark plug", unit_cost=Decimal("12.00"),
                                 quantity=40, min_stock=10, operator_id="tester"),
    ]
    return {p.sku: p for p in created}


@pytest.fixture
def service_note(service_note_service):
    return service_note_service.create_service_note(
        vehicle_id="vehicle-1",
        maintenance_type="preventive",
        mechanic="Carlos",
        description="10k km revision",
        start_date=date(2024, 5, 2),
        mileage=10150,
        operator_id="tester",
    )


def cart_item(part, quantity, unit_cost) -> PartCartItem:
    return PartCartItem(
        part_id=part.id,
        sku=part.sku,
        name=part.name,
        available_quantity=part.quantity,
        quantity_to_use=quantity,
        unit_cost=Decimal(str(unit_cost)),
    )


@pytest.fixture
def make_cart_item():
    return cart_item

from decimal import Decimal

import pytest

from app.models.expense import Expense, to_decimal
from app.models.project import Project


def test_project_without_status_reads_as_active():
    p = Project(**{"id": "p1", "name": "Legacy", "managerId": "m@x.com", "consultantIds": ["a@x.com"]})
    assert p.status == "active"
    assert p.to_doc()["status"] == "active"


def test_project_null_fields_are_defaulted():
    p = Project(**{"id": "p1", "name": "Legacy", "managerId": "m@x.com", "consultantIds": None,
                   "status": None, "description": None})
    assert p.consultant_ids == []
    assert p.status == "active"
    assert p.description == ""


def test_stored_documents_use_camel_case():
    p = Project(id="p1", name="n", manager_id="m@x.com", consultant_ids=["a@x.com"])
    doc = p.to_doc()
    assert doc["managerId"] == "m@x.com"
    assert doc["consultantIds"] == ["a@x.com"]
    assert "updatedAt" not in doc


def test_money_is_fixed_two_places():
    assert to_decimal("125.5") == Decimal("125.50")
    assert to_decimal(0.1 + 0.2) == Decimal("0.30")
    assert str(to_decimal(125.5)) == "125.50"
    with pytest.raises(ValueError):
        to_decimal("abc")
    with pytest.raises(ValueError):
        to_decimal("NaN")
    with pytest.raises(ValueError):
        to_decimal("1e30")


def test_legacy_float_amount_survives_repeated_round_trips():
    doc = {"id": "e1", "consultantEmail": "a@x.com", "projectId": "p1", "amount": 19.99,
           "description": "Taxi", "date": "2024-01-01", "submittedAt": "2024-01-01T00:00:00.000Z"}
    for _ in range(5):
        doc = Expense(**doc).to_doc()
    assert doc["amount"] == "19.99"
    assert "mileage" not in doc

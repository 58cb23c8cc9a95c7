# app/models/expense.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Literal, Optional

from pydantic import BeforeValidator

from app.models.base import StoredModel

ReviewStatus = Literal["pending", "approved", "rejected"]
REVIEW_DECISIONS = ("approved", "rejected")

CENTS = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Décimal à 2 décimales ; les anciens enregistrements stockaient des floats."""
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValueError(f"not a decimal number: {value!r}")
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    try:
        return d.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # plus de 28 chiffres significatifs une fois arrondi
        raise ValueError(f"number out of range: {value!r}")


Money = Annotated[Decimal, BeforeValidator(to_decimal)]


class Mileage(StoredModel):
    start_location: str
    end_location: str
    distance: Money


class Expense(StoredModel):
    """Note de frais stockée sous `expense:<id>`."""
    id: str
    consultant_email: str                 # bénéficiaire
    project_id: str
    amount: Money
    description: str
    date: str
    receipt_url: str = ""
    receipt_file_name: Optional[str] = None
    status: ReviewStatus = "pending"
    submitted_at: str
    submitted_by: Optional[str] = None    # auteur réel (manager pour le compte d'un consultant)
    reviewed_at: Optional[str] = None
    reviewed_by: Optional[str] = None
    mileage: Optional[Mileage] = None


class MileageEntry(StoredModel):
    """Trajet déclaré seul, stocké sous `mileage:<id>`."""
    id: str
    consultant_email: str
    project_id: str
    start_location: str
    end_location: str
    distance: Money
    date: str
    notes: str = ""
    status: ReviewStatus = "pending"
    submitted_at: str
    reviewed_at: Optional[str] = None
    reviewed_by: Optional[str] = None

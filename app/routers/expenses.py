# app/routers/expenses.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.auth import get_current_user
from app.deps import get_blob, get_store
from app.models.auth import AppUser
from app.models.schemas import ExpenseInput, MileageInput, ReviewInput
from app.services.blob_client import BlobStorage
from app.services.expenses_service import list_expenses, review_expense
from app.services.kv_store import KVStore
from app.services.mileage_service import create_mileage_entry, list_mileage_entries, review_mileage_entry
from app.services.workflow import UploadedFile, submit_expense

router = APIRouter()


async def _read_upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    if file is None:
        return None
    data = await file.read()
    return UploadedFile(filename=file.filename or "file", content_type=file.content_type, data=data)


# ========== NOTES DE FRAIS ==========

@router.post("/expenses")
async def create_expense_route(
    project_id: Optional[str] = Form(None, alias="projectId"),
    amount: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    consultant_email: Optional[str] = Form(None, alias="consultantEmail"),
    start_location: Optional[str] = Form(None, alias="startLocation"),
    end_location: Optional[str] = Form(None, alias="endLocation"),
    distance: Optional[str] = Form(None),
    receipt: Optional[UploadFile] = File(None),
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    blob: BlobStorage = Depends(get_blob),
):
    """Formulaire multipart ; `consultantEmail` seulement pour un manager."""
    data = ExpenseInput(
        project_id=project_id,
        amount=amount,
        description=description,
        date=date,
        consultant_email=consultant_email,
        start_location=start_location,
        end_location=end_location,
        distance=distance,
    )
    expense = submit_expense(store, blob, user, data, await _read_upload(receipt))
    return {"success": True, "expense": expense.to_doc()}


@router.get("/expenses")
def list_expenses_route(
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    return {"expenses": [e.to_doc() for e in list_expenses(store, user)]}


@router.put("/expenses/{expense_id}")
def review_expense_route(
    expense_id: str,
    body: ReviewInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    expense = review_expense(store, user, expense_id, body.status)
    return {"success": True, "expense": expense.to_doc()}


# ========== TRAJETS ==========

@router.post("/mileage")
def create_mileage_route(
    body: MileageInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    entry = create_mileage_entry(store, user, body)
    return {"success": True, "mileage": entry.to_doc()}


@router.get("/mileage")
def list_mileage_route(
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    return {"mileage": [m.to_doc() for m in list_mileage_entries(store, user)]}


@router.put("/mileage/{entry_id}")
def review_mileage_route(
    entry_id: str,
    body: ReviewInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    entry = review_mileage_entry(store, user, entry_id, body.status)
    return {"success": True, "mileage": entry.to_doc()}

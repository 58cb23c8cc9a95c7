# app/models/schemas.py
"""Corps de requêtes (JSON et multipart)."""
from typing import Annotated, Optional, Union

from email_validator import validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _check_email(value: str) -> str:
    # syntaxe seulement : l'adresse est conservée telle quelle (clé sensible à la casse)
    validate_email(value, check_deliverability=False)
    return value


Email = Annotated[str, AfterValidator(_check_email)]


class _Input(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupInput(_Input):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={"example": {
            "email": "jane@acme.com",
            "password": "s3cret!",
            "name": "Jane Doe",
            "role": "consultant",
        }},
    )
    email: Email
    password: str
    name: str
    role: str


class CreateProjectInput(_Input):
    name: str = ""
    description: Optional[str] = None


class AssignConsultantInput(_Input):
    consultant_email: str = ""


class ProjectStatusInput(_Input):
    status: str = ""


class ReviewInput(_Input):
    status: str = ""


class ExpenseInput(_Input):
    """Champs du formulaire multipart POST /expenses (hors fichier)."""
    project_id: Optional[str] = None
    amount: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    # uniquement pour un manager qui saisit pour un consultant
    consultant_email: Optional[str] = None
    # trajet optionnel : pris en compte seulement si les trois sont fournis
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    distance: Optional[str] = None


class MileageInput(_Input):
    project_id: Optional[str] = None
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    distance: Optional[Union[str, int, float]] = None
    date: Optional[str] = None
    notes: Optional[str] = None


class NewConsultantInput(_Input):
    email: Email
    password: str = ""
    name: Optional[str] = None


class UpdateConsultantInput(_Input):
    name: Optional[str] = None
    new_email: Optional[Email] = None


class PasswordInput(_Input):
    password: str = ""


class ProfileInput(_Input):
    name: Optional[str] = None
    email: Optional[Email] = None

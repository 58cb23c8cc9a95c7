# app/models/base.py
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoredModel(BaseModel):
    """
    Base des enregistrements du store clé/valeur.
    Attributs Python en snake_case, documents stockés / JSON en camelCase
    (managerId, consultantIds, submittedAt...).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

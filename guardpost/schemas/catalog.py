from pydantic import BaseModel
import uuid


class ViolationTypeOut(BaseModel):
    id: uuid.UUID
    label: str
    slug: str

    model_config = {"from_attributes": True}


class PostOut(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class AuditTypeOut(BaseModel):
    id: uuid.UUID
    label: str
    slug: str

    model_config = {"from_attributes": True}

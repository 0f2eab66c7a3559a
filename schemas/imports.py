from typing import Literal, Optional

from pydantic import BaseModel, Field


class ImportRowResult(BaseModel):
    row: int
    business_name: str = Field("", alias="businessName")
    status: Literal["imported", "error"]
    error: Optional[str] = None
    offers_added: int = Field(0, alias="offersAdded")

    model_config = {"populate_by_name": True}


class ImportSummary(BaseModel):
    imported: int = 0
    errors: int = 0
    results: list[ImportRowResult] = Field(default_factory=list)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)

# backend/app/schemas/country.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CountryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    dial_code: str
    format: str

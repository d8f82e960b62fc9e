# backend/app/api/v1/countries.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter

from app.core.countries import COUNTRIES
from app.schemas.common import ApiResponse
from app.schemas.country import CountryOut

router = APIRouter(prefix="/countries", tags=["countries"])


@router.get("", response_model=ApiResponse[List[CountryOut]])
async def list_countries():
    """Supported countries, sorted by name."""
    return ApiResponse(data=[CountryOut.model_validate(c) for c in COUNTRIES])

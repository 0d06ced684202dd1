from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class SalesFiltersModel(BaseModel):
    year: Union[int, str] = "latest"
    item_type: str = "all"
    month: Union[int, str] = "all"
    supplier_query: str = ""


class MetaFacetsResponse(BaseModel):
    years: List[int]
    item_types: List[str]
    error: Optional[str] = None


class SupportRequest(BaseModel):
    email: str = ""
    password: str = ""
    name: str = Field(default="", description="Display name, used on registration only.")


class AuthUserModel(BaseModel):
    uid: str
    email: str
    display_name: Optional[str] = None

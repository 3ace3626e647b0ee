from pydantic import BaseModel, Field
from typing import Literal
from uuid import uuid4

AssetType = Literal["Cash", "Stock", "Crypto", "Forex", "Other"]


class AssetCreate(BaseModel):
    asset_type: AssetType
    asset_name: str = Field(..., min_length=1)
    invested_amount: float = Field(..., ge=0)
    current_value: float = Field(..., ge=0)


class AssetValueUpdate(BaseModel):
    current_value: float = Field(..., ge=0)


class AssetInDB(BaseModel):
    user_id: str
    asset_id: str = Field(default_factory=lambda: str(uuid4()))
    asset_type: AssetType
    asset_name: str
    invested_amount: float
    current_value: float


class AssetPublic(BaseModel):
    asset_id: str
    asset_type: str
    asset_name: str
    invested_amount: float
    current_value: float

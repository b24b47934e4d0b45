from typing import Optional, Literal, Dict, Any
from pydantic import BaseModel, ConfigDict, Field

class Coupon(BaseModel):
    """Code promo rattaché à exactement une boutique (unicité: store_id + code)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    code: str
    store_id: str = Field(alias="storeId")
    discount_type: Literal["percentage", "fixed_amount"] = Field(alias="discountType")
    discount_value: float = Field(alias="discountValue", ge=0)
    min_spend: Optional[float] = Field(default=None, alias="minSpend")

def coupon_from_row(row: Dict[str, Any]) -> Coupon:
    """Convertit une ligne Supabase (snake_case) en Coupon."""
    return Coupon(
        id=str(row.get("id") or ""),
        code=str(row.get("code") or ""),
        store_id=str(row.get("store_id") or ""),
        discount_type=row.get("discount_type") or "percentage",
        discount_value=float(row.get("discount_value") or 0),
        min_spend=float(row["min_spend"]) if row.get("min_spend") is not None else None,
    )

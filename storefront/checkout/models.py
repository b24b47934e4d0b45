"""
Modèles d'échange du checkout (payload UI en camelCase, attributs Python en snake_case).
"""
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.coupons.models import Coupon

DeliveryMethod = Literal["pickup", "economy", "normal", "express"]

class CartItem(BaseModel):
    """Instantané produit côté client; jamais persisté hors OrderItem."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)
    store_id: str = Field(alias="storeId")
    store_name: Optional[str] = Field(default=None, alias="storeName")
    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")

class OrderFormData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    email: EmailStr
    contact_number: Optional[str] = Field(default=None, alias="contactNumber")
    # Position "lat,lng" (sert aussi d'adresse de livraison)
    location: str = ""
    delivery_method: DeliveryMethod = Field(alias="deliveryMethod")
    mobile_money_number: str = Field(alias="mobileMoneyNumber", min_length=1)
    customer_specification: Optional[str] = Field(default=None, alias="customerSpecification")

class StoreError(BaseModel):
    """Erreur rattachée à une boutique (paiement, base, stock)."""
    model_config = ConfigDict(populate_by_name=True)

    store_id: str = Field(alias="storeId")
    store_name: Optional[str] = Field(default=None, alias="storeName")
    product_id: Optional[str] = Field(default=None, alias="productId")
    message: str

class PlaceOrderResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    order_ids: List[str] = Field(default_factory=list, alias="orderIds")
    message: Optional[str] = None
    error: Optional[str] = None
    detailed_errors: List[StoreError] = Field(default_factory=list, alias="detailedErrors")

class DeliveryCostRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location: str
    cart_items: List[CartItem] = Field(alias="cartItems")

class VerifyCouponRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    store_ids: List[str] = Field(alias="storeIds")
    applied_coupons: List[Coupon] = Field(default_factory=list, alias="appliedCoupons")

class PlaceOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_data: OrderFormData = Field(alias="formData")
    cart_items: List[CartItem] = Field(default_factory=list, alias="cartItems")
    applied_coupons: List[Coupon] = Field(default_factory=list, alias="appliedCoupons")

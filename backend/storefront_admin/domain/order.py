"""
Order Domain Models

Orders originate on Shopify and are cached locally; the local copy is
overwritten wholesale on every pull.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class OrderLineItem(BaseModel):
    """
    Order line item - one product/variant row of an order

    Fields:
        product_id: Shopify product ID ('' when the product was deleted)
        variant_id: Shopify variant ID ('' when the variant was deleted)
        title: Line title at order time
        quantity: Units ordered
        price: Unit price
    """

    product_id: str = Field("", description="Shopify product ID")
    variant_id: str = Field("", description="Shopify variant ID")
    title: str = Field("", description="Line item title")
    quantity: int = Field(0, description="Quantity ordered", ge=0)
    price: Decimal = Field(Decimal('0'), description="Unit price", ge=0)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(data['price'])
        data['subtotal'] = float(self.subtotal)
        return data


class OrderCustomer(BaseModel):
    """Customer snapshot embedded in the order"""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Order(BaseModel):
    """
    Order domain model - local cache of a Shopify order

    Fields:
        id: Local order ID (stable across pulls)
        external_id: Shopify order ID (authoritative)
        order_number: Shopify order number
        customer: Customer snapshot, None for guest/POS orders
        total_price: Order total
        currency: ISO currency code
        payment_status: Shopify financial_status
        fulfillment_status: Shopify fulfillment_status
        line_items: Ordered line items
        created_at / updated_at: Shopify timestamps
    """

    id: str = Field(..., description="Local order ID")
    external_id: str = Field(..., description="Shopify order ID")
    order_number: str = Field(..., description="Order number")
    customer: Optional[OrderCustomer] = Field(None, description="Customer snapshot")

    total_price: Decimal = Field(Decimal('0'), description="Order total", ge=0)
    currency: str = Field(..., description="Currency code")

    payment_status: str = Field("pending", description="Payment status")
    fulfillment_status: str = Field("unfulfilled", description="Fulfillment status")

    line_items: List[OrderLineItem] = Field(default_factory=list, description="Line items")

    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    # Computed properties
    @property
    def item_count(self) -> int:
        return len(self.line_items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.line_items)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == 'paid'

    @property
    def is_fulfilled(self) -> bool:
        return self.fulfillment_status == 'fulfilled'

    def to_dict(self) -> dict:
        """Convert to dictionary with computed fields and JSON friendly values"""
        data = self.model_dump()

        data['item_count'] = self.item_count
        data['total_quantity'] = self.total_quantity
        data['is_paid'] = self.is_paid
        data['is_fulfilled'] = self.is_fulfilled

        data['total_price'] = float(data['total_price'])
        data['line_items'] = [item.to_dict() for item in self.line_items]

        if data.get('created_at'):
            data['created_at'] = data['created_at'].isoformat()
        if data.get('updated_at'):
            data['updated_at'] = data['updated_at'].isoformat()

        return data

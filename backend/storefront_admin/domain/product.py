"""
Product Domain Model

Represents a catalog product held in the local store and mirrored to Shopify.
This is the single source of truth for product data structure.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class Product(BaseModel):
    """
    Product domain model - represents a product in the local catalog

    Fields:
        id: Local product ID (opaque string, primary key)
        external_id: Shopify product ID, present once the product is mirrored
        name: Product name (Shopify title)
        description: Product description (Shopify body_html)
        price: Selling price of the single variant
        category: Product category (Shopify product_type)
        stock: Inventory quantity of the single variant
        image_urls: Public image URLs, in display order
        created_at: When product was created
        updated_at: When product was last written locally
    """

    # Primary identification
    id: str = Field(..., description="Local product ID")
    external_id: Optional[str] = Field(None, description="Shopify product ID")

    # Details
    name: str = Field(..., description="Product name", min_length=1)
    description: str = Field("", description="Product description")
    category: str = Field(..., description="Product category", min_length=1)
    image_urls: List[str] = Field(default_factory=list, description="Image URLs")

    # Pricing and inventory
    price: Decimal = Field(..., description="Sale price", ge=0)
    stock: int = Field(0, description="Units in stock", ge=0)

    # Metadata
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    # Computed properties
    @property
    def is_mirrored(self) -> bool:
        """Whether the product already exists on Shopify"""
        return bool(self.external_id)

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock <= 0

    @property
    def inventory_value(self) -> Decimal:
        return self.price * self.stock

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Returns dict with all fields plus computed properties
        """
        data = self.model_dump()

        data['is_mirrored'] = self.is_mirrored
        data['is_out_of_stock'] = self.is_out_of_stock

        # Convert Decimal to float for JSON compatibility
        data['price'] = float(data['price'])

        if data.get('created_at'):
            data['created_at'] = data['created_at'].isoformat()
        if data.get('updated_at'):
            data['updated_at'] = data['updated_at'].isoformat()

        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0, decimal_places=2)
    category: str = Field(..., min_length=1)
    stock: int = Field(0, ge=0)
    image_urls: List[str] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    """Schema for updating an existing product (partial)"""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1)
    stock: Optional[int] = Field(None, ge=0)
    image_urls: Optional[List[str]] = None

    def changes(self) -> dict:
        """Fields explicitly provided by the client, without nulls"""
        return self.model_dump(exclude_unset=True, exclude_none=True)

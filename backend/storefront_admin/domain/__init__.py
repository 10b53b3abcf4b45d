"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.
"""
from storefront_admin.domain.product import Product, ProductCreate, ProductUpdate
from storefront_admin.domain.order import Order, OrderLineItem, OrderCustomer
from storefront_admin.domain.user import User, UserCreate, LoginRequest

__all__ = [
    'Product', 'ProductCreate', 'ProductUpdate',
    'Order', 'OrderLineItem', 'OrderCustomer',
    'User', 'UserCreate', 'LoginRequest',
]

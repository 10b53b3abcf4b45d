"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.
"""
from storefront_admin.repositories.product_repository import ProductRepository
from storefront_admin.repositories.order_repository import OrderRepository
from storefront_admin.repositories.user_repository import UserRepository

__all__ = [
    'ProductRepository',
    'OrderRepository',
    'UserRepository',
]

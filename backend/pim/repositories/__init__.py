"""
Repository Layer - Data Access

This layer handles all record store queries and returns domain models.
Repositories abstract away SQL / file details from business logic.

Author: TM3
Date: 2026-03-02
"""
from pim.repositories.product_repository import (
    ProductRepository,
    LocalProductRepository,
    get_product_repository,
)

__all__ = [
    'ProductRepository',
    'LocalProductRepository',
    'get_product_repository',
]

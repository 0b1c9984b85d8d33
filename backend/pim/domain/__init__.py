"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities
and the pure GTIN check digit engine.

Author: TM3
Date: 2026-03-02
"""
from pim.domain.product import Product, ProductCreate, ProductUpdate
from pim.domain.gs1 import RegistrationRequest, RegistrationOutcome, VerificationResult
from pim.domain.gtin import ChecksumResult, compute_check_digit, validate

__all__ = [
    'Product',
    'ProductCreate',
    'ProductUpdate',
    'RegistrationRequest',
    'RegistrationOutcome',
    'VerificationResult',
    'ChecksumResult',
    'compute_check_digit',
    'validate',
]

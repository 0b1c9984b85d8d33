"""
GS1 Registration Domain Models

Request/outcome types exchanged with the GS1 Brasil registration client.

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional


class RegistrationRequest(BaseModel):
    """
    Product attributes sent to the registry

    Fields:
        description: Trade item description (required)
        brand: Brand name (falls back to sku, then description)
        sku: Internal SKU
        ncm: NCM tax classification code (opaque, digits kept)
        cest: CEST tax classification code (opaque, digits kept)
        gtin: Identifier to register; None when the registry assigns one
        gpc_code: GS1 Global Product Classification brick code
        image_url: Public image URL for the registry media block
        gross_weight / net_weight: Kilograms
        net_content: Net content value (unit in net_content_unit)
        origin: ISO 3166 numeric country of origin ("076" = Brazil)
    """
    description: str = ""
    brand: Optional[str] = None
    sku: Optional[str] = None
    ncm: Optional[str] = None
    cest: Optional[str] = None
    gtin: Optional[str] = None
    gpc_code: Optional[str] = None
    image_url: Optional[str] = None
    gross_weight: Optional[float] = Field(None, ge=0)
    net_weight: Optional[float] = Field(None, ge=0)
    net_content: Optional[float] = Field(None, ge=0)
    net_content_unit: str = "H87"  # GS1 code for "piece"
    origin: Optional[str] = "076"

    @property
    def brand_name(self) -> str:
        return self.brand or self.sku or self.description


class RegistrationOutcome(BaseModel):
    """
    Normalized result of a registration call

    Failures are raised as GS1Error by GS1Client.register, never returned:
    outcomes coming from the client always have success=True and
    error_message=None. error_message is only for callers that record a
    caught GS1Error as an outcome.
    """
    success: bool
    gtin: Optional[str] = None
    status: Optional[str] = None
    error_message: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None


class VerificationResult(BaseModel):
    """
    Result of looking an identifier up at the registry

    source is 'own' when the account-scoped lookup answered and 'registry'
    when the secondary public lookup did.
    """
    found: bool
    source: Literal["own", "registry"] = "own"
    gtin: Optional[str] = None
    product: Optional[Dict[str, Any]] = None

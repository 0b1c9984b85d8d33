"""
Product Domain Model

Represents a product record in the PIM catalog.
This is the single source of truth for product data structure.

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from pim.domain.gtin import is_valid as gtin_is_valid
from pim.domain.media import drive_url_to_thumbnail, format_ncm


class Product(BaseModel):
    """
    Product domain model - a product record managed in the PIM

    Fields:
        id: Record identifier (UUID string)
        name: Product name (also the GS1 trade item description)
        sku: Stock Keeping Unit
        ncm: NCM tax classification code (Brazil)
        cest: CEST tax classification code (Brazil)
        ean: EAN/GTIN barcode
        cost: Cost price as typed (kept as text, like the spreadsheet)

        # Media
        photos_url: Google Drive folder with product photos
        thumbnail: Thumbnail image URL or Drive link
        video_ml: Mercado Livre video link
        video_shopee: Shopee video link

        # GS1 attributes
        gpc_code: GS1 Global Product Classification brick
        gross_weight / net_weight: Kilograms, as text
        net_content: Net content, as text
        origin: Country of origin (ISO numeric, "076" = Brazil)

        # Metadata
        created_at: When record was created
        updated_at: When record was last updated
    """

    id: str = Field(..., description="Record ID")
    name: str = Field("", description="Product name")
    sku: str = Field("", description="Stock Keeping Unit")
    ncm: str = Field("", description="NCM code")
    cest: str = Field("", description="CEST code")
    ean: str = Field("", description="EAN/GTIN barcode")
    cost: str = Field("", description="Cost price")

    photos_url: str = Field("", description="Drive folder with photos")
    thumbnail: str = Field("", description="Thumbnail URL")
    video_ml: str = Field("", description="Mercado Livre video URL")
    video_shopee: str = Field("", description="Shopee video URL")

    gpc_code: str = Field("", description="GS1 GPC brick code")
    gross_weight: str = Field("", description="Gross weight (kg)")
    net_weight: str = Field("", description="Net weight (kg)")
    net_content: str = Field("", description="Net content")
    origin: str = Field("076", description="Country of origin (ISO numeric)")

    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    # Computed properties
    @property
    def ean_valid(self) -> Optional[bool]:
        """Check digit validity of the EAN, None when there is no EAN"""
        if not self.ean.strip():
            return None
        return gtin_is_valid(self.ean)

    @property
    def thumbnail_url(self) -> Optional[str]:
        """Displayable thumbnail (Drive links converted)"""
        return drive_url_to_thumbnail(self.thumbnail)

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields
        """
        data = self.model_dump()

        data['ean_valid'] = self.ean_valid
        data['ncm_formatted'] = format_ncm(self.ncm)
        data['thumbnail_url'] = self.thumbnail_url

        if data.get('created_at'):
            data['created_at'] = data['created_at'].isoformat()
        if data.get('updated_at'):
            data['updated_at'] = data['updated_at'].isoformat()

        return data


# Editable columns, in spreadsheet/export order
PRODUCT_FIELDS = [
    'name', 'sku', 'ncm', 'cest', 'ean', 'cost',
    'photos_url', 'thumbnail', 'video_ml', 'video_shopee',
    'gpc_code', 'gross_weight', 'net_weight', 'net_content', 'origin',
]


def blank_product_fields(**data) -> dict:
    """Every editable field with its default, overridden by data"""
    fields = {name: '' for name in PRODUCT_FIELDS}
    fields['origin'] = '076'
    fields.update({k: v for k, v in data.items() if k in PRODUCT_FIELDS and v is not None})
    return fields


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = ""
    sku: str = ""
    ncm: str = ""
    cest: str = ""
    ean: str = ""
    cost: str = ""
    photos_url: str = ""
    thumbnail: str = ""
    video_ml: str = ""
    video_shopee: str = ""
    gpc_code: str = ""
    gross_weight: str = ""
    net_weight: str = ""
    net_content: str = ""
    origin: str = "076"


class ProductUpdate(BaseModel):
    """Schema for updating an existing product"""
    name: Optional[str] = None
    sku: Optional[str] = None
    ncm: Optional[str] = None
    cest: Optional[str] = None
    ean: Optional[str] = None
    cost: Optional[str] = None
    photos_url: Optional[str] = None
    thumbnail: Optional[str] = None
    video_ml: Optional[str] = None
    video_shopee: Optional[str] = None
    gpc_code: Optional[str] = None
    gross_weight: Optional[str] = None
    net_weight: Optional[str] = None
    net_content: Optional[str] = None
    origin: Optional[str] = None


# Catalog filters (id -> field that must be blank)
PRODUCT_FILTERS = {
    'all': None,
    'no_video_ml': 'video_ml',
    'no_video_shopee': 'video_shopee',
    'no_ean': 'ean',
    'no_ncm': 'ncm',
    'no_photos': 'photos_url',
    'no_thumbnail': 'thumbnail',
}

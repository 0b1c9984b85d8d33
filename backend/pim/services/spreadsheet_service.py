"""
Spreadsheet import/export for product records

Import reads .xlsx/.xls/.csv files and maps header names onto product
fields. Export and the import template are written with openpyxl.
"""
import io
import logging
from typing import Dict, List, Sequence

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from pim.domain.product import PRODUCT_FIELDS, Product

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ('.xlsx', '.xls', '.csv')
SHEET_TITLE = "Produtos"

# Spreadsheet header variants (lower-cased, trimmed) -> product field
COLUMN_MAP = {
    'nome': 'name',
    'name': 'name',
    'produto': 'name',
    'sku': 'sku',
    'ncm': 'ncm',
    'cest': 'cest',
    'ean': 'ean',
    'gtin': 'ean',
    'codigo barras': 'ean',
    'código de barras': 'ean',
    'custo': 'cost',
    'custo (r$)': 'cost',
    'cost': 'cost',
    'fotos': 'photos_url',
    'fotos drive': 'photos_url',
    'fotos_drive': 'photos_url',
    'link fotos': 'photos_url',
    'photos_url': 'photos_url',
    'thumbnail': 'thumbnail',
    'imagem': 'thumbnail',
    'video ml': 'video_ml',
    'vídeo ml': 'video_ml',
    'video_ml': 'video_ml',
    'video shopee': 'video_shopee',
    'vídeo shopee': 'video_shopee',
    'video_shopee': 'video_shopee',
    'gpc': 'gpc_code',
    'gpc_code': 'gpc_code',
    'peso bruto': 'gross_weight',
    'peso_bruto': 'gross_weight',
    'gross_weight': 'gross_weight',
    'peso liquido': 'net_weight',
    'peso líquido': 'net_weight',
    'peso_liquido': 'net_weight',
    'net_weight': 'net_weight',
    'conteudo liquido': 'net_content',
    'conteúdo líquido': 'net_content',
    'conteudo_liquido': 'net_content',
    'net_content': 'net_content',
    'origem': 'origin',
    'origin': 'origin',
}

TEMPLATE_ROW = {
    'name': 'Exemplo de Produto',
    'sku': 'SKU-001',
    'ncm': '39241000',
    'cest': '',
    'ean': '7891234567895',
    'cost': '29.90',
    'photos_url': 'https://drive.google.com/drive/folders/...',
    'thumbnail': '',
    'video_ml': 'https://youtube.com/...',
    'video_shopee': '',
    'gpc_code': '',
    'gross_weight': '',
    'net_weight': '',
    'net_content': '',
    'origin': '076',
}


class SpreadsheetService:
    """Parse and write product spreadsheets"""

    @staticmethod
    def _read_frame(content: bytes, filename: str) -> pd.DataFrame:
        # Everything as text: EANs keep their leading zeros
        if filename.lower().endswith('.csv'):
            return pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False, encoding='utf-8-sig')
        return pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=str, keep_default_na=False)

    def parse_products_file(self, content: bytes, filename: str) -> List[Dict[str, str]]:
        """
        Parse a spreadsheet into product field dicts

        Args:
            content: Raw file bytes
            filename: Original filename (extension decides the reader)

        Returns:
            One dict per non-empty row, only recognized columns

        Raises:
            ValueError: Unsupported format, unreadable file, empty sheet or
                no recognized column
        """
        if not filename or not filename.lower().endswith(SUPPORTED_EXTENSIONS):
            raise ValueError("Invalid format. Use .xlsx, .xls or .csv")

        try:
            df = self._read_frame(content, filename)
        except Exception as e:
            raise ValueError(f"Error reading spreadsheet: {str(e)}")

        if df.empty:
            raise ValueError("The spreadsheet is empty.")

        columns = {}
        for col in df.columns:
            field = COLUMN_MAP.get(str(col).strip().lower())
            if field:
                columns[col] = field

        if not columns:
            raise ValueError("No recognized column. Check the import template.")

        rows = []
        for _, row in df.iterrows():
            product = {}
            for col, field in columns.items():
                value = row[col]
                value = '' if pd.isna(value) else str(value).strip()
                if value:
                    product[field] = value
            if product:
                rows.append(product)

        logger.info(f"Parsed {len(rows)} product rows from {filename} (columns: {sorted(set(columns.values()))})")
        return rows

    @staticmethod
    def _write_workbook(rows: Sequence[Dict[str, str]]) -> io.BytesIO:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_TITLE

        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)

        for col_num, header in enumerate(PRODUCT_FIELDS, 1):
            cell = ws.cell(row=1, column=col_num, value=header)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')

        for row_num, data in enumerate(rows, 2):
            for col_num, field in enumerate(PRODUCT_FIELDS, 1):
                cell = ws.cell(row=row_num, column=col_num, value=data.get(field, ''))
                # Barcodes and tax codes are text, not numbers
                cell.number_format = '@'

        ws.freeze_panes = 'A2'

        excel_file = io.BytesIO()
        wb.save(excel_file)
        excel_file.seek(0)
        return excel_file

    def export_products(self, products: Sequence[Product]) -> io.BytesIO:
        """Write products to an .xlsx (id and timestamps left out)"""
        rows = [
            {field: getattr(product, field) for field in PRODUCT_FIELDS}
            for product in products
        ]
        return self._write_workbook(rows)

    def generate_template(self) -> io.BytesIO:
        """Import template with one example row"""
        return self._write_workbook([TEMPLATE_ROW])

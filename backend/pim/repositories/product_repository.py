"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
Postgres (Supabase) is used when DATABASE_URL is configured; otherwise
records live in a local JSON file.

Expected table:

    CREATE TABLE products (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT DEFAULT '', sku TEXT DEFAULT '', ncm TEXT DEFAULT '',
        cest TEXT DEFAULT '', ean TEXT DEFAULT '', cost TEXT DEFAULT '',
        photos_url TEXT DEFAULT '', thumbnail TEXT DEFAULT '',
        video_ml TEXT DEFAULT '', video_shopee TEXT DEFAULT '',
        gpc_code TEXT DEFAULT '', gross_weight TEXT DEFAULT '',
        net_weight TEXT DEFAULT '', net_content TEXT DEFAULT '',
        origin TEXT DEFAULT '076',
        created_at TIMESTAMPTZ DEFAULT now(),
        updated_at TIMESTAMPTZ DEFAULT now()
    );

Author: TM3
Date: 2026-03-02
"""
import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from psycopg2.extras import execute_batch

from pim.core.database import get_db_connection_dict
from pim.domain.product import PRODUCT_FIELDS, PRODUCT_FILTERS, Product, blank_product_fields

logger = logging.getLogger(__name__)

SELECT_COLUMNS = ", ".join(["id"] + PRODUCT_FIELDS + ["created_at", "updated_at"])


def _editable(data: Dict) -> Dict:
    """Keep only editable fields, stringified"""
    return {
        k: ("" if v is None else str(v))
        for k, v in data.items()
        if k in PRODUCT_FIELDS
    }


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return False
    return True


def _filter_column(filter_id: Optional[str]) -> Optional[str]:
    if not filter_id:
        return None
    if filter_id not in PRODUCT_FILTERS:
        raise ValueError(f"Unknown filter '{filter_id}'. Use one of: {', '.join(PRODUCT_FILTERS)}")
    return PRODUCT_FILTERS[filter_id]


class ProductRepository:
    """
    Repository for Product data access (PostgreSQL)

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """Map database row to Product domain model"""
        data = {name: row.get(name) or '' for name in PRODUCT_FIELDS}
        return Product(
            id=str(row['id']),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            **data
        )

    def find_by_id(self, product_id: str) -> Optional[Product]:
        """
        Find product by ID

        Args:
            product_id: Record ID

        Returns:
            Product or None if not found
        """
        if not _is_uuid(product_id):
            return None

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {SELECT_COLUMNS}
                FROM products
                WHERE id = %s
            """, (product_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_product(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_sku(self, sku: str) -> Optional[Product]:
        """Find product by SKU (case-insensitive)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {SELECT_COLUMNS}
                FROM products
                WHERE LOWER(sku) = LOWER(%s)
                ORDER BY created_at DESC
                LIMIT 1
            """, (sku,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_product(row)

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        filter_id: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters, newest first

        Args:
            filter_id: Catalog filter (no_ean, no_ncm, no_thumbnail, ...)
            search: Search in name/SKU (case-insensitive) or EAN/NCM
            limit: Maximum results to return (None = all)
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        column = _filter_column(filter_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            # Build WHERE clause
            conditions = []
            params = []

            if column:
                # column comes from the PRODUCT_FILTERS whitelist
                conditions.append(f"COALESCE(TRIM({column}), '') = ''")

            if search and search.strip():
                conditions.append("(name ILIKE %s OR sku ILIKE %s OR ean LIKE %s OR ncm LIKE %s)")
                search_term = f"%{search.strip()}%"
                params.extend([search_term, search_term, search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            # Get total count
            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM products
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            # Get products
            query = f"""
                SELECT {SELECT_COLUMNS}
                FROM products
                WHERE {where_clause}
                ORDER BY created_at DESC
            """
            page_params = list(params)
            if limit is not None:
                query += " LIMIT %s OFFSET %s"
                page_params.extend([limit, offset])

            cursor.execute(query, page_params)

            rows = cursor.fetchall()
            products = [self._map_row_to_product(row) for row in rows]

            return products, total

        finally:
            cursor.close()
            conn.close()

    def create(self, data: Dict) -> Product:
        """
        Insert a product

        Args:
            data: Field values; missing fields get blank defaults

        Returns:
            Created Product
        """
        fields = blank_product_fields(**_editable(data))
        columns = ", ".join(fields.keys())
        placeholders = ", ".join(["%s"] * len(fields))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products ({columns})
                VALUES ({placeholders})
                RETURNING {SELECT_COLUMNS}
            """, list(fields.values()))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: str, data: Dict) -> Product:
        """
        Update a product

        Raises:
            LookupError: Product does not exist
        """
        if not _is_uuid(product_id):
            raise LookupError(f"Product {product_id} not found")

        fields = _editable(data)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            assignments = [f"{name} = %s" for name in fields]
            assignments.append("updated_at = NOW()")

            cursor.execute(f"""
                UPDATE products
                SET {", ".join(assignments)}
                WHERE id = %s
                RETURNING {SELECT_COLUMNS}
            """, list(fields.values()) + [product_id])

            row = cursor.fetchone()
            if not row:
                conn.rollback()
                raise LookupError(f"Product {product_id} not found")

            conn.commit()
            return self._map_row_to_product(row)

        except LookupError:
            raise

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, product_id: str) -> bool:
        """
        Delete a product

        Returns:
            True if a row was deleted
        """
        if not _is_uuid(product_id):
            return False

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        finally:
            cursor.close()
            conn.close()

    def bulk_upsert(self, rows: Iterable[Dict]) -> int:
        """
        Import rows: update products whose SKU already exists (case-insensitive),
        insert the rest with blank defaults

        Returns:
            Number of rows imported (inserted + updated)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id, sku FROM products")
            sku_map = {
                (row['sku'] or '').lower(): str(row['id'])
                for row in cursor.fetchall()
                if row['sku']
            }

            to_insert = []
            to_update = []
            for row in rows:
                fields = _editable(row)
                sku = (fields.get('sku') or '').lower()
                existing_id = sku_map.get(sku) if sku else None
                if existing_id:
                    to_update.append((existing_id, fields))
                else:
                    to_insert.append(blank_product_fields(**fields))

            if to_insert:
                columns = list(to_insert[0].keys())
                execute_batch(
                    cursor,
                    f"INSERT INTO products ({', '.join(columns)}) VALUES ({', '.join(['%s'] * len(columns))})",
                    [[record[c] for c in columns] for record in to_insert]
                )

            for product_id, fields in to_update:
                if not fields:
                    continue
                assignments = ", ".join(f"{name} = %s" for name in fields)
                cursor.execute(
                    f"UPDATE products SET {assignments}, updated_at = NOW() WHERE id = %s",
                    list(fields.values()) + [product_id]
                )

            conn.commit()
            logger.info(f"Bulk import: {len(to_insert)} inserted, {len(to_update)} updated")
            return len(to_insert) + len(to_update)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()


class LocalProductRepository:
    """
    Repository for Product data access backed by a local JSON file

    Used when no database is configured. Records are kept newest first.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _load(self) -> List[Dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, ValueError):
            logger.warning(f"Local product store {self.path} is not valid JSON, starting empty")
            return []
        return data if isinstance(data, list) else []

    def _save(self, records: List[Dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(records, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    @staticmethod
    def _to_product(record: Dict) -> Product:
        return Product(**record)

    def find_by_id(self, product_id: str) -> Optional[Product]:
        for record in self._load():
            if record.get('id') == product_id:
                return self._to_product(record)
        return None

    def find_by_sku(self, sku: str) -> Optional[Product]:
        sku = (sku or '').lower()
        if not sku:
            return None
        for record in self._load():
            if (record.get('sku') or '').lower() == sku:
                return self._to_product(record)
        return None

    def find_all(
        self,
        filter_id: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        column = _filter_column(filter_id)
        records = self._load()

        if column:
            records = [r for r in records if not (r.get(column) or '').strip()]

        if search and search.strip():
            query = search.strip().lower()
            records = [
                r for r in records
                if query in (r.get('name') or '').lower()
                or query in (r.get('sku') or '').lower()
                or query in (r.get('ean') or '')
                or query in (r.get('ncm') or '')
            ]

        total = len(records)
        end = offset + limit if limit is not None else None
        return [self._to_product(r) for r in records[offset:end]], total

    def create(self, data: Dict) -> Product:
        now = self._now()
        record = {
            'id': str(uuid.uuid4()),
            **blank_product_fields(**_editable(data)),
            'created_at': now,
            'updated_at': now,
        }
        with self._lock:
            records = self._load()
            records.insert(0, record)
            self._save(records)
        return self._to_product(record)

    def update(self, product_id: str, data: Dict) -> Product:
        with self._lock:
            records = self._load()
            for index, record in enumerate(records):
                if record.get('id') == product_id:
                    records[index] = {**record, **_editable(data), 'updated_at': self._now()}
                    self._save(records)
                    return self._to_product(records[index])
        raise LookupError(f"Product {product_id} not found")

    def delete(self, product_id: str) -> bool:
        with self._lock:
            records = self._load()
            remaining = [r for r in records if r.get('id') != product_id]
            if len(remaining) == len(records):
                return False
            self._save(remaining)
            return True

    def bulk_upsert(self, rows: Iterable[Dict]) -> int:
        count = 0
        now = self._now()
        with self._lock:
            records = self._load()
            for row in rows:
                fields = _editable(row)
                sku = (fields.get('sku') or '').lower()
                index = next(
                    (i for i, r in enumerate(records) if sku and (r.get('sku') or '').lower() == sku),
                    None
                )
                if index is not None:
                    records[index] = {**records[index], **fields, 'updated_at': now}
                else:
                    records.insert(0, {
                        'id': str(uuid.uuid4()),
                        **blank_product_fields(**fields),
                        'created_at': now,
                        'updated_at': now,
                    })
                count += 1
            self._save(records)
        logger.info(f"Bulk import into local store: {count} rows")
        return count


_local_repositories: Dict[str, LocalProductRepository] = {}
_local_repositories_lock = threading.Lock()


def get_product_repository():
    """
    FastAPI dependency returning the configured repository

    Postgres when DATABASE_URL is set, local JSON file otherwise.
    """
    from pim.core.config import settings

    if settings.DATABASE_URL:
        return ProductRepository()

    # One instance per file so every request shares its lock
    path = os.path.abspath(settings.LOCAL_STORE_PATH)
    with _local_repositories_lock:
        if path not in _local_repositories:
            _local_repositories[path] = LocalProductRepository(path)
        return _local_repositories[path]

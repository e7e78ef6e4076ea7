"""
User product catalog over the backend ``user_products`` table.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel

from ..clients.backend_client import BackendClient, Filter
from ..errors import BackendAuthError, BackendNotFoundError, ValidationError
from ..models.product import ProductInput, UserProduct
from ..result import Result, capture

logger = structlog.get_logger(__name__)

PRODUCTS_TABLE = 'user_products'
MATCHES_TABLE = 'product_contact_matches'
DRAFTS_TABLE = 'product_drafts'

# Stripped when a product is copied
_IDENTITY_FIELDS = ('id', 'user_id', 'created_at', 'updated_at')


class ProductStats(BaseModel):
    product_id: str
    match_count: int = 0
    draft_count: int = 0


class ProductService:
    """
    CRUD for the products a user sells.

    All operations require a signed-in user; every method returns a Result.
    """

    def __init__(self, backend: BackendClient, user_id: str | None):
        self.backend = backend
        self.user_id = user_id

    def _require_user(self, action: str = 'manage products') -> str:
        if not self.user_id:
            raise BackendAuthError(f'You must be logged in to {action}')
        return self.user_id

    # =========================================================================
    # Reads
    # =========================================================================

    async def list(self) -> Result[list[UserProduct]]:
        """Active products first, then newest first."""
        return await capture(self._list(), 'products.list.failed')

    async def _list(self) -> list[UserProduct]:
        user_id = self._require_user()
        result = await self.backend.select(
            PRODUCTS_TABLE,
            filters=[Filter.eq('user_id', user_id)],
            order=[('is_active', False), ('created_at', False)],
        )
        return [UserProduct.model_validate(row) for row in result.rows]

    async def get_by_id(self, product_id: str) -> Result[UserProduct]:
        return await capture(self._get(product_id), 'products.get.failed', product_id=product_id)

    async def _get(self, product_id: str) -> UserProduct:
        user_id = self._require_user()
        result = await self.backend.select(
            PRODUCTS_TABLE,
            filters=[Filter.eq('id', product_id), Filter.eq('user_id', user_id)],
            limit=1,
        )
        if not result.first:
            raise BackendNotFoundError('Product not found', context={'product_id': product_id})
        return UserProduct.model_validate(result.first)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(self, data: ProductInput) -> Result[UserProduct]:
        return await capture(self._create(data), 'products.create.failed')

    async def _create(self, data: ProductInput) -> UserProduct:
        user_id = self._require_user('create a product')
        if not data.name.strip():
            raise ValidationError('Product name is required')
        row = data.model_dump(mode='json')
        row.update(user_id=user_id, is_active=True)
        result = await self.backend.insert(PRODUCTS_TABLE, row)
        product = UserProduct.model_validate(result.first)
        logger.info('products.created', product_id=product.id)
        return product

    async def update(self, product_id: str, updates: dict[str, Any]) -> Result[UserProduct]:
        return await capture(
            self._update(product_id, updates), 'products.update.failed', product_id=product_id
        )

    async def _update(self, product_id: str, updates: dict[str, Any]) -> UserProduct:
        self._require_user()
        values = {k: v for k, v in updates.items() if k not in _IDENTITY_FIELDS}
        if not values:
            raise ValidationError('No updates provided')
        values['updated_at'] = datetime.now(timezone.utc).isoformat()
        result = await self.backend.update(
            PRODUCTS_TABLE, values, filters=[Filter.eq('id', product_id)]
        )
        if not result.first:
            raise BackendNotFoundError('Product not found', context={'product_id': product_id})
        return UserProduct.model_validate(result.first)

    async def archive(self, product_id: str) -> Result[UserProduct]:
        """Hide a product from matching without deleting its history."""
        return await self.update(product_id, {'is_active': False})

    async def delete(self, product_id: str) -> Result[str]:
        return await capture(self._delete(product_id), 'products.delete.failed', product_id=product_id)

    async def _delete(self, product_id: str) -> str:
        self._require_user()
        await self.backend.delete(PRODUCTS_TABLE, filters=[Filter.eq('id', product_id)])
        logger.info('products.deleted', product_id=product_id)
        return product_id

    async def duplicate(self, product: UserProduct, new_name: str) -> Result[UserProduct]:
        """Insert a copy of ``product`` under ``new_name`` owned by the current user."""
        return await capture(
            self._duplicate(product, new_name), 'products.duplicate.failed', product_id=product.id
        )

    async def _duplicate(self, product: UserProduct, new_name: str) -> UserProduct:
        user_id = self._require_user()
        row = product.model_dump(mode='json', exclude=set(_IDENTITY_FIELDS))
        row.update(name=new_name, user_id=user_id)
        result = await self.backend.insert(PRODUCTS_TABLE, row)
        return UserProduct.model_validate(result.first)

    # =========================================================================
    # Counts
    # =========================================================================

    async def stats(self, product_id: str) -> Result[ProductStats]:
        """Match and draft counts, fetched concurrently."""
        return await capture(self._stats(product_id), 'products.stats.failed', product_id=product_id)

    async def count_matches(self, product_id: str) -> Result[int]:
        return await capture(self._count(MATCHES_TABLE, product_id), 'products.count_matches.failed')

    async def count_drafts(self, product_id: str) -> Result[int]:
        return await capture(self._count(DRAFTS_TABLE, product_id), 'products.count_drafts.failed')

    async def _count(self, table: str, product_id: str) -> int:
        result = await self.backend.select(
            table,
            filters=[Filter.eq('product_id', product_id)],
            columns='id',
            limit=1,
            count=True,
        )
        return result.count or 0

    async def _stats(self, product_id: str) -> ProductStats:
        matches, drafts = await asyncio.gather(
            self._count(MATCHES_TABLE, product_id),
            self._count(DRAFTS_TABLE, product_id),
        )
        return ProductStats(product_id=product_id, match_count=matches, draft_count=drafts)

# SPDX-License-Identifier: AGPL-3.0-or-later
"""Read access to items, purchases, sales and assets."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from bizcore.contracts.inventory import Asset, Item, Purchase, Sale
from bizcore.contracts.relationship import EntityType
from biztracker.api.client import ApiClient, ApiError
from biztracker.api.envelope import EnvelopeError, unwrap_list, unwrap_one
from biztracker.cache import QueryCache

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _short(entity_id: str) -> str:
    return f"{entity_id[:8]}..."


class EntityReader:
    """Cached, envelope-tolerant reads of the four entity collections.

    ``list_*`` never raise and return ``[]`` when the backend is unreachable
    or answers with something unreadable. ``get_*`` raise ``ApiError`` or
    ``EnvelopeError``.
    """

    def __init__(self, client: ApiClient, cache: Optional[QueryCache] = None) -> None:
        self.client = client
        self.cache = cache if cache is not None else QueryCache()

    def list_items(self) -> List[Item]:
        return self._list("items", Item)

    def list_purchases(self) -> List[Purchase]:
        return self._list("purchases", Purchase)

    def list_sales(self) -> List[Sale]:
        return self._list("sales", Sale)

    def list_assets(self) -> List[Asset]:
        return self._list("assets", Asset)

    def get_item(self, item_id: str) -> Item:
        return self._get("items", item_id, Item)

    def get_purchase(self, purchase_id: str) -> Purchase:
        return self._get("purchases", purchase_id, Purchase)

    def get_sale(self, sale_id: str) -> Sale:
        return self._get("sales", sale_id, Sale)

    def get_asset(self, asset_id: str) -> Asset:
        return self._get("assets", asset_id, Asset)

    def entity_name(self, entity_id: str, entity_type: Union[EntityType, str]) -> str:
        """Label for one end of a relationship; falls back to a shortened id."""

        kind = entity_type.value if isinstance(entity_type, EntityType) else str(entity_type)
        fallback = f"{kind} {_short(entity_id)}"
        try:
            if kind == EntityType.ITEM.value:
                return self.get_item(entity_id).name or fallback
            if kind == EntityType.ASSET.value:
                return self.get_asset(entity_id).name or fallback
            if kind == EntityType.PURCHASE.value:
                invoice = self.get_purchase(entity_id).invoice_number
                return f"Purchase {invoice}" if invoice else fallback
            if kind == EntityType.SALE.value:
                order = self.get_sale(entity_id).order_number
                return f"Sale {order}" if order else fallback
        except (ApiError, EnvelopeError) as exc:
            logger.warning("could not resolve name for %s %s: %s", kind, entity_id, exc)
        return fallback

    # ------------------------------------------------------------------

    def _list(self, collection: str, model: Type[ModelT]) -> List[ModelT]:
        def loader() -> List[ModelT]:
            rows = unwrap_list(self.client.get(f"/{collection}"))
            return self._parse_rows(collection, rows, model)

        try:
            return list(self.cache.fetch((collection,), loader))
        except (ApiError, EnvelopeError) as exc:
            logger.warning("listing %s failed, returning no results: %s", collection, exc)
            return []

    def _get(self, collection: str, entity_id: str, model: Type[ModelT]) -> ModelT:
        def loader() -> ModelT:
            row = unwrap_one(self.client.get(f"/{collection}/{entity_id}"))
            try:
                return model.model_validate(row)
            except ValidationError as exc:
                raise EnvelopeError(f"unreadable {collection} record {entity_id}") from exc

        return self.cache.fetch((collection, entity_id), loader)

    @staticmethod
    def _parse_rows(collection: str, rows: List[Dict[str, Any]], model: Type[ModelT]) -> List[ModelT]:
        parsed: List[ModelT] = []
        for row in rows:
            try:
                parsed.append(model.model_validate(row))
            except ValidationError:
                logger.warning("skipping unreadable %s record %s", collection, row.get("_id") or row.get("id"))
        return parsed


__all__ = ["EntityReader"]

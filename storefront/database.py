from __future__ import annotations
from typing import Any, Optional
from uuid import uuid4

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .config import settings

PRODUCTS = "product"

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


async def get_db() -> AsyncIOMotorDatabase:
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(settings.DATABASE_URL)
        _db = _client[settings.DATABASE_NAME]
    return _db


def id_filter(product_id: str) -> dict[str, Any]:
    # Seeded records use ObjectIds, imported ones keep their string ids
    if ObjectId.is_valid(product_id):
        return {"_id": {"$in": [ObjectId(product_id), product_id]}}
    return {"_id": product_id}


def to_client(doc: dict[str, Any]) -> dict[str, Any]:
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


class ContentStore:
    """Product and review records in the content database."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def list_products(self, limit: int = 8, q: Optional[str] = None) -> list[dict[str, Any]]:
        filter_dict: dict[str, Any] = {}
        if q:
            filter_dict["name"] = {"$regex": q, "$options": "i"}
        cursor = self.db[PRODUCTS].find(filter_dict).sort("created_at", -1).limit(limit)
        docs = []
        async for d in cursor:
            docs.append(to_client(d))
        return docs

    async def get_product_by_slug(self, slug: str) -> Optional[dict[str, Any]]:
        doc = await self.db[PRODUCTS].find_one({"slug": slug})
        return to_client(doc) if doc else None

    async def get_product(self, product_id: str) -> Optional[dict[str, Any]]:
        doc = await self.db[PRODUCTS].find_one(id_filter(product_id))
        return to_client(doc) if doc else None

    async def append_review(self, product_id: str, review: dict[str, Any]) -> bool:
        # $push creates the array when the record has none yet
        result = await self.db[PRODUCTS].update_one(
            id_filter(product_id),
            {"$push": {"reviews": {**review, "_key": uuid4().hex[:12]}}},
        )
        return result.matched_count > 0


async def get_content_store() -> ContentStore:
    return ContentStore(await get_db())

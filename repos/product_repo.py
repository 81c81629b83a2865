from typing import Any, Dict, Iterable, Optional
from pymongo.errors import PyMongoError

from db.mongodb import convert_many_to_object_ids, convert_to_object_id, is_valid_object_id
from utils.exceptions import StorageError
from logger.logger import logger

PRODUCT_SUMMARY_PROJECTION = {"name": 1, "images": 1, "price": 1, "seller": 1}


def product_summary(product: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a catalog document to the fields a chat shows"""
    return {
        "id": str(product["_id"]),
        "name": product.get("name", ""),
        "images": product.get("images") or [],
        "price": product.get("price"),
        "seller_id": str(product["seller"]) if product.get("seller") else None,
    }


class ProductRepository:
    """
    Read-only access to the product catalog
    """

    def __init__(self, db):
        self.db = db

    async def get_product_by_id(self, product_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a product summary by ID
        Returns None if the id is malformed or the product does not exist
        """
        if not is_valid_object_id(product_id):
            return None

        try:
            product = await self.db.products.find_one(
                {"_id": convert_to_object_id(product_id)},
                PRODUCT_SUMMARY_PROJECTION
            )
        except PyMongoError as e:
            logger.error(f"Error getting product {product_id}: {e}")
            raise StorageError(f"Error in get_product_by_id: {str(e)}")

        return product_summary(product) if product else None

    async def get_products_by_ids(self, product_ids: Iterable) -> Dict[str, Dict[str, Any]]:
        """Resolve many products at once, keyed by product id"""
        object_ids = list(set(convert_many_to_object_ids(product_ids)))
        if not object_ids:
            return {}

        try:
            cursor = self.db.products.find({"_id": {"$in": object_ids}}, PRODUCT_SUMMARY_PROJECTION)
            products = await cursor.to_list(length=len(object_ids))
        except PyMongoError as e:
            logger.error(f"Error resolving products {object_ids}: {e}")
            raise StorageError(f"Error in get_products_by_ids: {str(e)}")

        return {str(p["_id"]): product_summary(p) for p in products}

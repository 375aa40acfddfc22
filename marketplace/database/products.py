"""Read-only product lookups for the cart and checkout"""

from typing import Optional

from ..core.store import DocumentStore, PRODUCTS
from ..models.product import Product
from .helpers import to_object_id


class ProductDatabase:
    """Catalog reads; stock is never mutated from here"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID"""
        products = await self.store.collection(PRODUCTS)
        doc = await products.find_one({"_id": to_object_id(product_id, "productId")})
        return Product.from_document(doc) if doc else None

    async def count_products(self, seller_email: Optional[str] = None) -> int:
        products = await self.store.collection(PRODUCTS)
        query = {"sellerEmail": seller_email} if seller_email else {}
        return await products.count_documents(query)

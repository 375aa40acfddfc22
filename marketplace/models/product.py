"""Product model (read-only view of the catalog collection)"""

from pydantic import BaseModel, Field
from typing import Optional


class Product(BaseModel):
    """Catalog product as seen by the cart and checkout"""
    id: str
    name: str = ""
    price: float = Field(default=0.0, ge=0)
    stock: int = 0
    seller_id: Optional[str] = None
    seller_email: Optional[str] = None
    seller_name: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> "Product":
        seller_id = doc.get("sellerId")
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            price=float(doc.get("price") or 0),
            stock=int(doc.get("stock") or 0),
            seller_id=str(seller_id) if seller_id is not None else None,
            seller_email=doc.get("sellerEmail"),
            seller_name=doc.get("sellerName"),
            image=doc.get("image"),
            category=doc.get("category"),
        )

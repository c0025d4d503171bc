# models/product.py
from dataclasses import dataclass
from typing import Optional, Dict, Any
from datetime import datetime


@dataclass
class CatalogProduct:
    """Off-chain copy of a product registered on the ledger"""
    uid: str
    manufacturer: str
    details: str
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "manufacturer": self.manufacturer,
            "details": self.details,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'CatalogProduct':
        return cls(
            id=str(document.get("_id")) if document.get("_id") is not None else None,
            uid=document["uid"],
            manufacturer=document["manufacturer"],
            details=document.get("details", ""),
            created_at=document.get("created_at"),
            updated_at=document.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "uid": self.uid,
            "manufacturer": self.manufacturer,
            "details": self.details,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

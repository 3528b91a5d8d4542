"""
Product catalog.

Maps provider product ids to the license they grant.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from core.domain.value_objects import BillingType, LicenseType


@dataclass(frozen=True)
class CatalogProduct:
    """A product the service sells."""

    product_id: str
    name: str
    license_type: LicenseType
    billing_type: BillingType
    price_id: Optional[str] = None

    @property
    def checkout_mode(self) -> str:
        """Checkout mode that sells this product."""
        return "subscription" if self.billing_type == BillingType.RECURRING else "payment"


class ProductCatalog:
    """Lookup of provider product ids."""

    def __init__(self, products: Mapping[str, CatalogProduct]):
        self._products: Dict[str, CatalogProduct] = dict(products)

    @classmethod
    def from_config(cls, config: Mapping[str, Mapping[str, Any]]) -> "ProductCatalog":
        """
        Build a catalog from a settings mapping.

        Args:
            config: product id -> {"name", "license_type", "billing_type", "price_id"}

        Returns:
            ProductCatalog instance
        """
        products = {}
        for product_id, entry in config.items():
            products[product_id] = CatalogProduct(
                product_id=product_id,
                name=entry.get("name", product_id),
                license_type=LicenseType(entry["license_type"]),
                billing_type=BillingType(entry.get("billing_type", BillingType.RECURRING.value)),
                price_id=entry.get("price_id"),
            )
        return cls(products)

    def get(self, product_id: str) -> Optional[CatalogProduct]:
        return self._products.get(product_id)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._products

    def __len__(self) -> int:
        return len(self._products)

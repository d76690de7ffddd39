"""
Catalog repository seam.

The engine never owns durable storage. It reads the catalog and sends
price updates through a CatalogRepository supplied by the caller.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol

from pricematch.models import PriceUpdateRequest, Product


logger = logging.getLogger(__name__)


class CatalogRepository(Protocol):
    """Read/write access to a tenant's catalog."""

    def list_products(self) -> List[Product]:
        ...

    def update_price(self, request: PriceUpdateRequest) -> None:
        """Persist a new current price; raise if the write fails."""
        ...


class InMemoryCatalogRepository:
    """Dictionary-backed catalog, for tests and embedding without a database.

    Attributes:
        updates: Every price update request received, in order
    """

    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._products: Dict[str, Product] = {}
        self.updates: List[PriceUpdateRequest] = []
        for product in products or ():
            self.upsert(product)

    def upsert(self, product: Product) -> None:
        self._products[product.id] = product

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def list_products(self) -> List[Product]:
        return [self._products[key] for key in sorted(self._products)]

    def update_price(self, request: PriceUpdateRequest) -> None:
        """Replace the product's current price.

        Raises:
            KeyError: If the product is not in the catalog
        """
        product = self._products.get(request.product_id)
        if product is None:
            raise KeyError(f"Unknown product {request.product_id}")
        self._products[request.product_id] = product.with_price(request.new_price)
        self.updates.append(request)
        logger.info(
            f"Updated price of {request.product_id}: "
            f"{product.current_price} -> {request.new_price}"
        )

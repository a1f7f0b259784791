"""Read-only views of products, prices and tax rates."""

import structlog

from .client import StripeClientInterface
from .exceptions import ProductError
from .listing import Listing
from .models import Product, TaxRate

logger = structlog.get_logger(__name__)


class CatalogService:
    def __init__(self, client: StripeClientInterface):
        self.client = client

    def products(self) -> Listing[Product]:
        return self.client.list_products()

    def tax_rates(self) -> Listing[TaxRate]:
        return self.client.list_tax_rates()

    def product_price(self, product_id: str) -> str:
        """Return the id of the product's default price."""
        product = self.client.get_product(product_id)
        if product is None:
            raise ProductError(
                f"no such product: {product_id}", details={"product_id": product_id}
            )
        if not product.default_price_id:
            raise ProductError(
                f"product {product_id} has no default price",
                details={"product_id": product_id},
            )
        logger.debug(
            "product_price_resolved",
            product_id=product_id,
            price_id=product.default_price_id,
        )
        return product.default_price_id

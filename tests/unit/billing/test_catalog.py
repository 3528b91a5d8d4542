"""
Unit tests for ProductCatalog.
"""
import pytest

from billing.domain.catalog import ProductCatalog
from core.domain.value_objects import BillingType, LicenseType


class TestProductCatalog:
    """Tests for ProductCatalog."""

    def test_from_config(self):
        """Test catalog entries are built from settings."""
        catalog = ProductCatalog.from_config(
            {
                "prod_a": {
                    "name": "Monthly",
                    "license_type": "subscription",
                    "billing_type": "recurring",
                },
                "prod_b": {"name": "Lifetime", "license_type": "perpetual", "billing_type": "one_time"},
            }
        )

        assert len(catalog) == 2
        assert "prod_a" in catalog
        product = catalog.get("prod_b")
        assert product.name == "Lifetime"
        assert product.license_type == LicenseType.PERPETUAL
        assert product.billing_type == BillingType.ONE_TIME

    def test_defaults(self):
        """Test name and billing type defaults."""
        catalog = ProductCatalog.from_config({"prod_a": {"license_type": "subscription"}})

        product = catalog.get("prod_a")
        assert product.name == "prod_a"
        assert product.billing_type == BillingType.RECURRING
        assert product.price_id is None

    def test_checkout_mode(self):
        """Test recurring products sell through subscription checkouts."""
        catalog = ProductCatalog.from_config(
            {
                "prod_a": {"license_type": "subscription", "price_id": "price_a"},
                "prod_b": {"license_type": "perpetual", "billing_type": "one_time"},
            }
        )

        assert catalog.get("prod_a").checkout_mode == "subscription"
        assert catalog.get("prod_a").price_id == "price_a"
        assert catalog.get("prod_b").checkout_mode == "payment"

    def test_unknown_product(self):
        """Test unknown ids are absent."""
        catalog = ProductCatalog.from_config({})

        assert catalog.get("prod_x") is None
        assert "prod_x" not in catalog

    def test_invalid_license_type(self):
        """Test a misconfigured license type fails loudly."""
        with pytest.raises(ValueError):
            ProductCatalog.from_config({"prod_a": {"license_type": "lifetime"}})

    def test_configured_products(self, product_catalog):
        """Test the default settings sell two subscriptions and one perpetual license."""
        types = sorted(
            product_catalog.get(product_id).license_type.value
            for product_id in ("prod_SuYkFqTzEpW78s", "prod_SuYlSMSfhzbVi6", "prod_SuYmPerpetual01")
        )

        assert types == ["perpetual", "subscription", "subscription"]

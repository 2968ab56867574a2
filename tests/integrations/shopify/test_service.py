"""
Tests for CatalogService search, fallback and failure handling.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from concierge.integrations.shopify.exceptions import ShopifyConnectionError, ShopifyGraphQLError
from concierge.integrations.shopify.models import ProductRecord, ShopifyConfig
from concierge.integrations.shopify.service import CatalogService
from concierge.utils.exceptions import ConfigurationError


def make_mock_client(listing=None, admin=None):
    client = MagicMock()
    client.list_public_products = AsyncMock(return_value=listing)
    client.get_catalog_products = AsyncMock(return_value=admin)
    client.close = AsyncMock()
    return client


class TestStorefrontSearch:

    @pytest.mark.asyncio
    async def test_keyword_filters_title_case_insensitively(self, storefront_config, listing_response):
        client = make_mock_client(listing=listing_response)
        service = CatalogService(storefront_config, source="storefront", client=client)

        records = await service.search("ACCENDINO")

        assert [r.name for r in records] == ["Accendino Clipper Classic"]
        client.list_public_products.assert_awaited_once_with(limit=250, page=1)

    @pytest.mark.asyncio
    async def test_keyword_matches_product_type(self, storefront_config, listing_response):
        client = make_mock_client(listing=listing_response)
        service = CatalogService(storefront_config, source="storefront", client=client)

        records = await service.search("grinder")

        assert len(records) == 1
        assert records[0].type == "Grinder"
        assert records[0].stock == 5
        assert records[0].price == "12.00"

    @pytest.mark.asyncio
    async def test_no_match_falls_back_to_unfiltered(self, storefront_config, listing_response):
        client = make_mock_client(listing=listing_response)
        service = CatalogService(storefront_config, source="storefront", client=client)

        records = await service.search("narghilè")

        assert len(records) == 3
        assert client.list_public_products.await_count == 2

    @pytest.mark.asyncio
    async def test_no_match_without_fallback_is_empty(self, storefront_config, listing_response):
        client = make_mock_client(listing=listing_response)
        service = CatalogService(storefront_config, source="storefront", allow_fallback=False, client=client)

        assert await service.search("narghilè") == []

    @pytest.mark.asyncio
    async def test_results_are_capped(self, storefront_config):
        listing = {
            "products": [
                {"title": f"Accendino {i}", "handle": f"accendino-{i}", "variants": [], "images": []}
                for i in range(12)
            ]
        }
        client = make_mock_client(listing=listing)
        service = CatalogService(storefront_config, source="storefront", max_results=5, client=client)

        records = await service.search("accendino")

        assert len(records) == 5

    @pytest.mark.asyncio
    async def test_records_without_handle_are_dropped_and_links_are_absolute(self, storefront_config, listing_response):
        client = make_mock_client(listing=listing_response)
        service = CatalogService(storefront_config, source="storefront", max_results=10, client=client)

        records = await service.search(None)

        assert "Prodotto senza handle" not in [r.name for r in records]
        for record in records:
            assert record.link.startswith("https://test-shop.myshopify.com/products/")


class TestAdminSearch:

    @pytest.mark.asyncio
    async def test_keyword_search_uses_relevance(self, shopify_config, admin_products_response):
        client = make_mock_client(admin=admin_products_response)
        service = CatalogService(shopify_config, client=client)

        records = await service.search("  clipper ")

        client.get_catalog_products.assert_awaited_once_with(
            first=5,
            query="title:*clipper* AND status:active",
            sort_key="RELEVANCE",
            reverse=False
        )
        assert records[0].name == "Accendino Clipper Classic"
        assert records[0].price == "2.5 EUR"
        assert records[0].image == "https://cdn.shopify.com/clipper-classic.jpg"

    @pytest.mark.asyncio
    async def test_empty_keyword_lists_best_sellers(self, shopify_config, admin_products_response):
        client = make_mock_client(admin=admin_products_response)
        service = CatalogService(shopify_config, client=client)

        await service.search("")

        client.get_catalog_products.assert_awaited_once_with(
            first=5,
            query="status:active",
            sort_key="INVENTORY_TOTAL",
            reverse=True
        )

    @pytest.mark.asyncio
    async def test_empty_result_triggers_unfiltered_query(self, shopify_config, admin_products_response):
        empty = {"data": {"products": {"edges": []}}}
        client = make_mock_client()
        client.get_catalog_products = AsyncMock(side_effect=[empty, admin_products_response])
        service = CatalogService(shopify_config, client=client)

        records = await service.search("narghilè")

        assert len(records) == 3
        second_call = client.get_catalog_products.await_args_list[1]
        assert second_call.kwargs["query"] == "status:active"

    @pytest.mark.asyncio
    async def test_negative_inventory_is_clamped(self, shopify_config, admin_products_response):
        client = make_mock_client(admin=admin_products_response)
        service = CatalogService(shopify_config, client=client)

        records = await service.search("clipper")

        micro = next(r for r in records if r.name == "Accendino Clipper Micro")
        assert micro.stock == 0

    @pytest.mark.asyncio
    async def test_payload_omits_missing_fields(self, shopify_config, admin_products_response):
        client = make_mock_client(admin=admin_products_response)
        service = CatalogService(shopify_config, client=client)

        records = await service.search("cartine")

        payload = next(r for r in records if r.name == "Cartine Lunghe Slim").to_payload()
        assert payload == {
            "name": "Cartine Lunghe Slim",
            "link": "https://test-shop.myshopify.com/products/cartine-lunghe-slim",
        }


class TestFailureHandling:

    @pytest.mark.asyncio
    async def test_upstream_error_returns_empty_list(self, shopify_config):
        client = make_mock_client()
        client.get_catalog_products = AsyncMock(side_effect=ShopifyGraphQLError("Throttled"))
        service = CatalogService(shopify_config, client=client)

        assert await service.search("clipper") == []

    @pytest.mark.asyncio
    async def test_connection_error_returns_empty_list(self, storefront_config):
        client = make_mock_client()
        client.list_public_products = AsyncMock(side_effect=ShopifyConnectionError("refused"))
        service = CatalogService(storefront_config, source="storefront", client=client)

        assert await service.search("clipper") == []

    @pytest.mark.asyncio
    async def test_malformed_body_returns_empty_list(self, storefront_config):
        client = make_mock_client(listing={"products": "not-a-list"})
        service = CatalogService(storefront_config, source="storefront", client=client)

        assert await service.search("clipper") == []

    @pytest.mark.asyncio
    async def test_one_bad_listing_entry_does_not_empty_the_page(self, storefront_config):
        listing = {
            "products": [
                {"title": "Good", "handle": "good", "product_type": "X"},
                {"title": {"it": "Cattivo"}, "handle": "bad-title"},
                {"title": "Odd type", "handle": "odd-type", "product_type": 7, "images": [None]},
                "not-a-product",
            ]
        }
        client = make_mock_client(listing=listing)
        service = CatalogService(storefront_config, source="storefront", client=client)

        records = await service.search(None)

        assert [r.name for r in records] == ["Good", "Odd type"]
        assert records[1].type == "7"
        assert records[1].image is None

    @pytest.mark.asyncio
    async def test_one_bad_admin_node_does_not_empty_the_page(self, shopify_config, admin_product_nodes):
        nodes = [{"title": ["not", "a", "string"], "handle": "broken"}] + admin_product_nodes
        response = {"data": {"products": {"edges": [{"node": node} for node in nodes]}}}
        client = make_mock_client(admin=response)
        service = CatalogService(shopify_config, client=client)

        records = await service.search("clipper")

        assert len(records) == 3
        assert "broken" not in [r.link.rsplit("/", 1)[-1] for r in records]

    @pytest.mark.asyncio
    async def test_unrepresentable_inventory_is_treated_as_unknown(self, storefront_config):
        listing = {
            "products": [
                {"title": "A", "handle": "a", "variants": [{"inventory_quantity": float("inf")}]},
                {"title": "B", "handle": "b", "variants": [{"inventory_quantity": float("nan")}, {"inventory_quantity": 2}]},
            ]
        }
        client = make_mock_client(listing=listing)
        service = CatalogService(storefront_config, source="storefront", client=client)

        records = await service.search(None)

        assert [(r.name, r.stock) for r in records] == [("A", None), ("B", 2)]

    @pytest.mark.asyncio
    async def test_unexpected_parse_error_returns_empty_list(self, storefront_config, monkeypatch):
        def explode(response, config):
            raise OverflowError("cannot convert float infinity to integer")

        monkeypatch.setattr("concierge.integrations.shopify.service.parse_listing_response", explode)
        client = make_mock_client(listing={"products": []})
        service = CatalogService(storefront_config, source="storefront", client=client)

        assert await service.search("clipper") == []


class TestConfiguration:

    def test_admin_source_requires_token(self, storefront_config):
        with pytest.raises(ConfigurationError) as exc_info:
            CatalogService(storefront_config, source="admin", client=make_mock_client())
        assert exc_info.value.missing == ["SHOPIFY_ACCESS_TOKEN"]

    def test_unknown_source_is_rejected(self, shopify_config):
        with pytest.raises(ConfigurationError):
            CatalogService(shopify_config, source="graphql", client=make_mock_client())

    def test_max_results_must_be_positive(self, shopify_config):
        with pytest.raises(ConfigurationError):
            CatalogService(shopify_config, max_results=0, client=make_mock_client())

    def test_from_settings(self, settings):
        service = CatalogService.from_settings(settings)

        assert service.source == "admin"
        assert service.config.store_domain == "test-shop.myshopify.com"
        assert service.config.access_token == "shpat_test"

    def test_product_record_rejects_negative_stock(self):
        with pytest.raises(PydanticValidationError):
            ProductRecord(name="x", link="https://x/products/x", stock=-1)

    @pytest.mark.asyncio
    async def test_close_closes_client(self):
        client = make_mock_client()
        service = CatalogService(ShopifyConfig(store_domain="s.example.com"), source="storefront", client=client)

        async with service:
            pass

        client.close.assert_awaited_once()

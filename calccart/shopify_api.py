"""Shopify Admin API helper."""

import logging
from typing import Any, Dict, List, Optional

import requests

from calccart.config import PRODUCTS_PAGE_SIZE, REQUEST_TIMEOUT, SHOPIFY_API_VERSION

__all__ = ["ShopifyAdminClient", "ShopifyAPIError", "PRODUCTS_QUERY"]

logger = logging.getLogger(__name__)

PRODUCTS_QUERY = """
query Products($first: Int!) {
  products(first: $first) {
    nodes {
      id
      title
      featuredImage {
        url
      }
    }
  }
}
"""


class ShopifyAPIError(Exception):
    """Raised when the Admin API returns an HTTP or GraphQL error."""


class ShopifyAdminClient:
    """Thin wrapper around the Shopify Admin GraphQL API."""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = SHOPIFY_API_VERSION,
        timeout: int = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.access_token,
        }

    def _url(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object."""
        try:
            resp = self.session.post(
                self._url(),
                headers=self._headers(),
                json={"query": query, "variables": variables or {}},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.exceptions.RequestException as e:
            raise ShopifyAPIError(f"Admin API request to {self.shop_domain} failed: {e}") from e
        except ValueError as e:
            raise ShopifyAPIError(f"Admin API returned invalid JSON: {e}") from e

        if payload.get("errors"):
            raise ShopifyAPIError(f"Admin API errors: {payload['errors']}")
        return payload.get("data") or {}

    def fetch_products(self, first: int = PRODUCTS_PAGE_SIZE) -> List[Dict[str, Any]]:
        """First page of products as ``{"id", "title", "featuredImage": {"url"} | None}``."""
        data = self.graphql(PRODUCTS_QUERY, {"first": first})
        products = (data.get("products") or {}).get("nodes") or []
        logger.debug("Fetched %d products for %s", len(products), self.shop_domain)
        return products

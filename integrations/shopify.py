"""
Shopify Admin API integration.

Pulls products through the GraphQL Admin API with cursor pagination and
downloads product images. Requests are retried a fixed number of times with
a fixed wait in between.
"""

from typing import Any, Iterator, Optional
import requests
import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from config import settings
from models.connector import ShopifyCredential
from exceptions import TransportError

logger = structlog.get_logger(__name__)

# Some CDNs refuse the default python-requests agent
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 6.1) AppleWebKit/537.11 "
    "(KHTML, like Gecko) Chrome/23.0.1271.1 Safari/537.11"
)

METAFIELDS_FRAGMENT = """
    metafields(first: 50) {
      edges { node { namespace key value } }
    }
"""

PRODUCTS_QUERY = """
query Products($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        title
        handle
        vendor
        descriptionHtml
        productType
        tags
        status
        seo { title description }
        options { name values }
        images(first: 50) { edges { node { originalSrc } } }
        collections(first: 50) { edges { node { handle } } }
        %(metafields)s
        variants(first: 100) {
          edges {
            node {
              id
              sku
              barcode
              price
              compareAtPrice
              taxable
              inventoryPolicy
              inventoryQuantity
              image { originalSrc }
              selectedOptions { name value }
              inventoryItem {
                tracked
                unitCost { amount }
                measurement { weight { value unit } }
              }
              %(metafields)s
            }
          }
        }
      }
    }
  }
}
""" % {"metafields": METAFIELDS_FRAGMENT}


class ShopifyClient:
    """
    GraphQL Admin API client for one credential.

    Usage:
        client = ShopifyClient(credential)
        for edge in client.iter_product_edges():
            ...
    """

    def __init__(
        self,
        credential: ShopifyCredential,
        session: Optional[requests.Session] = None,
        page_size: Optional[int] = None
    ):
        self.credential = credential
        self.session = session or requests.Session()
        self.page_size = page_size or settings.batch_size
        self.timeout = settings.http_timeout_seconds
        self.max_attempts = settings.http_max_attempts
        self.backoff_seconds = settings.http_backoff_seconds

    @property
    def graphql_url(self) -> str:
        shop_url = self.credential.shop_url.rstrip("/")
        if not shop_url.startswith(("http://", "https://")):
            shop_url = f"https://{shop_url}"
        version = self.credential.api_version or settings.shopify_api_version
        return f"{shop_url}/admin/api/{version}/graphql.json"

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        if not response.ok:
            raise requests.HTTPError(f"HTTP {response.status_code}", response=response)
        return response

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "shopify_request_failed",
            url=retry_state.args[1],
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            error=str(retry_state.outcome.exception())
        )

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Send a request, retrying failures with a fixed wait.

        Raises:
            TransportError: If every attempt failed
        """
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception_type(requests.RequestException),
            before_sleep=self._log_retry,
        )
        try:
            return retrying(self._send, method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(
                "shopify_request_gave_up",
                url=url,
                max_attempts=self.max_attempts,
                error=str(e)
            )
            raise TransportError(
                f"Request failed after {self.max_attempts} attempts",
                details={"url": url, "error": str(e)}
            ) from e

    def graphql(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict:
        """
        Run a GraphQL query.

        Returns:
            The "data" object of the response

        Raises:
            TransportError: If the request failed or the API returned errors
        """
        response = self._request(
            "POST",
            self.graphql_url,
            json={"query": query, "variables": variables or {}},
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": self.credential.access_token,
            },
        )
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError("Invalid JSON from Shopify", details={"error": str(e)}) from e

        if body.get("errors"):
            raise TransportError("Shopify GraphQL errors", details={"errors": body["errors"]})
        return body.get("data") or {}

    def fetch_products_page(self, cursor: Optional[str] = None) -> list[dict]:
        """
        Get one page of product edges.

        A failed request is treated as an empty page.
        """
        variables: dict[str, Any] = {"first": self.page_size}
        if cursor:
            variables["after"] = cursor

        try:
            data = self.graphql(PRODUCTS_QUERY, variables)
        except TransportError as e:
            logger.error("shopify_products_page_failed", cursor=cursor, details=e.details)
            return []

        return ((data.get("products") or {}).get("edges")) or []

    def iter_product_edges(self) -> Iterator[dict]:
        """
        Yield every product edge, page by page.

        Stops on an empty page, or when the last cursor is missing or
        repeats the previous one.
        """
        cursor = None
        pages = 0
        while True:
            edges = self.fetch_products_page(cursor)
            if not edges:
                break
            pages += 1
            yield from edges

            last_cursor = edges[-1].get("cursor")
            if not last_cursor or last_cursor == cursor:
                break
            cursor = last_cursor

        logger.info("shopify_products_fetched", pages=pages, shop=self.credential.shop_url)

    def download(self, url: str) -> Optional[bytes]:
        """
        Download a file (product image).

        Returns:
            File content, or None if the download failed
        """
        try:
            response = self._request("GET", url, headers={"User-Agent": BROWSER_USER_AGENT})
        except TransportError as e:
            logger.warning("shopify_download_failed", url=url, details=e.details)
            return None
        return response.content

"""Market data API client.

Looks up competitor prices for one SKU and turns them into MarketData.
Blocking requests calls run on worker threads when used from the
orchestrator (see ``fetch_one``).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Any

import requests

from src.common.config import MarketDataSettings, get_market_data_api_key, settings
from src.common.models import MarketData, PricePosition, PriceItem

from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class MarketDataError(RuntimeError):
    """Raised when market data for an item cannot be obtained or parsed."""


def build_market_data(
    price: float | None,
    competitor_prices: Iterable[float],
    band: float = 0.05,
) -> MarketData:
    """Position a price against competitor prices.

    The price is "low" below ``average * (1 - band)``, "high" above
    ``average * (1 + band)`` and "average" otherwise. Non-positive
    competitor prices are ignored.

    Raises:
        MarketDataError: No usable competitor price, or no own price.
    """
    prices = [round(float(p), 2) for p in competitor_prices if p is not None and float(p) > 0]
    if not prices:
        raise MarketDataError("no competitor prices")
    if price is None:
        raise MarketDataError("item has no price to compare")

    average = sum(prices) / len(prices)
    if price < average * (1 - band):
        position = PricePosition.LOW
    elif price > average * (1 + band):
        position = PricePosition.HIGH
    else:
        position = PricePosition.AVERAGE

    return MarketData(
        price_position=position,
        competitor_prices=prices,
        average_price=round(average, 2),
        min_price=min(prices),
        max_price=max(prices),
    )


class MarketDataClient:
    """requests-based client for a competitor price API.

    Expects ``GET {base_url}/competitor-prices?sku=...`` to answer with either
    ``{"competitor_prices": [..]}`` or ``{"offers": [{"price": ..}, ..]}``.

    Usage:
        with MarketDataClient() as client:
            orchestrator = BatchEnrichmentOrchestrator(client.fetch_one)
            result = await orchestrator.enrich(items)
    """

    BACKOFF_BASE = 2.0
    ENDPOINT = "competitor-prices"

    def __init__(
        self,
        config: MarketDataSettings | None = None,
        api_key: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or settings.market_data
        if not self.config.base_url:
            raise ValueError("Market data base URL is not configured (MARKET_DATA_BASE_URL)")
        self._api_key = api_key if api_key is not None else get_market_data_api_key()
        self._rate_limiter = RateLimiter(self.config.rate_limit_rpm)
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/{self.ENDPOINT}"

    def get_competitor_prices(self, sku: str) -> list[float]:
        """Fetch raw competitor prices for one SKU.

        Raises:
            MarketDataError: Request failed after all attempts or the payload
                could not be parsed.
        """
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        max_attempts = self.config.max_attempts
        last_exc: Exception | None = None
        for attempt in range(max_attempts):
            self._rate_limiter.wait()
            try:
                resp = self._session.get(
                    self.url,
                    params={"sku": sku},
                    headers=headers,
                    timeout=self.config.request_timeout,
                )
                resp.raise_for_status()
                return self._parse_prices(resp.json())
            except requests.RequestException as exc:
                last_exc = exc

                # 4xx other than 429 is permanent
                if (
                    isinstance(exc, requests.HTTPError)
                    and exc.response is not None
                    and 400 <= exc.response.status_code < 500
                    and exc.response.status_code != 429
                ):
                    raise MarketDataError(f"market data request for {sku} rejected: {exc}") from exc

                if attempt + 1 < max_attempts:
                    wait_time = self.BACKOFF_BASE ** attempt
                    logger.warning(
                        "Market data request for %s failed (attempt %d/%d): %s, retrying in %.1fs",
                        sku, attempt + 1, max_attempts, exc, wait_time,
                    )
                    time.sleep(wait_time)
            except ValueError as exc:
                raise MarketDataError(f"invalid market data payload for {sku}: {exc}") from exc

        raise MarketDataError(f"market data request for {sku} failed: {last_exc}") from last_exc

    @staticmethod
    def _parse_prices(payload: Any) -> list[float]:
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        if "competitor_prices" in payload:
            raw = payload["competitor_prices"]
        elif "offers" in payload:
            raw = [offer.get("price") for offer in payload["offers"] if isinstance(offer, dict)]
        else:
            raise ValueError("missing 'competitor_prices' or 'offers'")
        if not isinstance(raw, list):
            raise ValueError("competitor prices must be a list")
        return [float(p) for p in raw if p is not None]

    def fetch(self, item: PriceItem) -> MarketData:
        """Blocking lookup of MarketData for one item."""
        price = item.new_price if item.new_price is not None else item.old_price
        prices = self.get_competitor_prices(item.sku)
        return build_market_data(price, prices, band=self.config.position_band)

    async def fetch_one(self, item: PriceItem) -> MarketData:
        """Async adapter for the orchestrator; runs ``fetch`` on a worker thread."""
        return await asyncio.to_thread(self.fetch, item)

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> MarketDataClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

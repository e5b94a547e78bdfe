"""Geolocation of flow log source addresses.

Lookups go to an ipstack compatible HTTP API, one request per distinct
public source address in a batch, issued concurrently. Geolocation is best
effort: rate limiting, provider errors and transport failures all resolve to
`None` so that a record is never failed because of its location lookup.
"""

import asyncio
import ipaddress
import logging
import math
from typing import Any, Dict, Iterable, Optional

import httpx

from .errors import CredentialError, GeoProviderError
from .schemas import GeoInfo, GeoLocation
from .secrets import CredentialProvider

logger = logging.getLogger(__name__)

RESERVED_NETWORKS = (
    ipaddress.IPv4Network("127.0.0.0/8"),
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
)

RATE_LIMIT_STATUS_CODES = {403, 429}


def is_reserved_address(address: str) -> bool:
    """Loopback and RFC 1918 addresses have no meaningful location."""
    try:
        ip = ipaddress.IPv4Address(address)
    except ValueError:
        return True
    return any(ip in network for network in RESERVED_NETWORKS)


def _text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return "" if value is None else str(value)


def _coordinate(payload: Dict[str, Any], key: str) -> float:
    try:
        value = float(payload.get(key) or 0.0)
    except (TypeError, ValueError):
        return 0.0
    # NaN and Infinity have no JSON representation
    return value if math.isfinite(value) else 0.0


def to_geo_info(payload: Dict[str, Any]) -> GeoInfo:
    """Map a provider response body onto `GeoInfo`."""
    return GeoInfo(
        country_code=_text(payload, "country_code"),
        country_name=_text(payload, "country_name"),
        region_code=_text(payload, "region_code"),
        region_name=_text(payload, "region_name"),
        city=_text(payload, "city"),
        location=GeoLocation(
            lat=_coordinate(payload, "latitude"),
            lon=_coordinate(payload, "longitude"),
        ),
    )


class GeoResolver:
    """Resolves source addresses to `GeoInfo`.

    The access key is fetched lazily through the credential provider the
    first time a lookup is needed. If it cannot be retrieved, geolocation
    stays disabled for the lifetime of the resolver.
    """

    def __init__(
        self,
        endpoint: str,
        credentials: Optional[CredentialProvider] = None,
        enabled: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the resolver.

        Args:
            endpoint: Base URL of the geocode API; the address is appended as a path segment
            credentials: Provider of the API access key (None for keyless providers)
            enabled: Administrative switch for geolocation
            transport: Optional httpx transport, used to stub the provider in tests
        """
        self.endpoint = endpoint.rstrip("/")
        self.credentials = credentials
        self.enabled = enabled
        self.transport = transport
        self._access_key: Optional[str] = None
        self._credential_failed = False
        self._credential_lock = asyncio.Lock()

    @property
    def available(self) -> bool:
        return self.enabled and not self._credential_failed

    def should_resolve(self, address: str) -> bool:
        return self.available and not is_reserved_address(address)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            headers={"Content-Type": "application/json"},
        )

    async def _credential(self) -> Optional[str]:
        if self.credentials is None or self._access_key is not None or self._credential_failed:
            return self._access_key
        async with self._credential_lock:
            # Another lookup may have fetched it while we waited
            if self._access_key is not None or self._credential_failed:
                return self._access_key
            try:
                self._access_key = await asyncio.to_thread(self.credentials.get)
            except CredentialError as e:
                logger.error(f"[geocoder] Geolocation disabled, credential unavailable: {e}")
                self._credential_failed = True
        return self._access_key

    async def resolve(self, address: str, client: Optional[httpx.AsyncClient] = None) -> Optional[GeoInfo]:
        """Resolve one address, returning None when no data is available."""
        if not self.should_resolve(address):
            return None

        access_key = await self._credential()
        if not self.available:
            return None

        if client is None:
            async with self._client() as own_client:
                return await self._lookup(own_client, address, access_key)
        return await self._lookup(client, address, access_key)

    async def resolve_many(self, addresses: Iterable[str]) -> Dict[str, Optional[GeoInfo]]:
        """Resolve distinct addresses concurrently over a shared client."""
        unique = list(dict.fromkeys(addresses))
        results: Dict[str, Optional[GeoInfo]] = {address: None for address in unique}

        pending = [address for address in unique if self.should_resolve(address)]
        if not pending:
            return results

        await self._credential()
        if not self.available:
            return results

        async with self._client() as client:
            resolved = await asyncio.gather(*(self.resolve(address, client) for address in pending))

        results.update(zip(pending, resolved))
        logger.info(
            f"Geolocated {sum(1 for geo in resolved if geo is not None)} of {len(pending)} public addresses"
        )
        return results

    async def _lookup(self, client: httpx.AsyncClient, address: str, access_key: Optional[str]) -> Optional[GeoInfo]:
        try:
            return await self._request(client, address, access_key)
        except GeoProviderError as e:
            logger.error(f"[geocoder] {e}")
        except httpx.HTTPError as e:
            logger.error(f"[geocoder] Request for {address} failed: {e}")
        except ValueError as e:
            logger.error(f"[geocoder] Invalid response for {address}: {e}")
        return None

    async def _request(self, client: httpx.AsyncClient, address: str, access_key: Optional[str]) -> Optional[GeoInfo]:
        params = {"access_key": access_key} if access_key else None
        response = await client.get(f"{self.endpoint}/{address}", params=params)

        # The provider answers 403 once the rate limit is exceeded
        if response.status_code in RATE_LIMIT_STATUS_CODES:
            logger.warning("[geocoder] Exceeded rate limit")
            return None
        if response.status_code != 200:
            raise GeoProviderError(response.status_code, address)

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        if payload.get("success") is False:
            error = payload.get("error") or {}
            logger.warning(f"[geocoder] Lookup refused for {address}: {error.get('info') or error.get('type')}")
            return None

        return to_geo_info(payload)

"""Thin async HTTP client for the GeoServer WFS endpoint.

Wraps the three requests CityFix issues against the feature service:
GetFeature (bulk load), DescribeFeatureType (namespace discovery) and
Transaction (issue insert). Transport and status errors propagate as
``httpx`` exceptions; callers decide how each one degrades.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from cityfix.core.config import WFSConfig

logger = logging.getLogger("cityfix.wfs.client")


class WFSClient:
    """Async client for one WFS feature type.

    Usage::

        async with WFSClient(config.wfs) as wfs:
            collection = await wfs.get_features()
    """

    def __init__(
        self,
        config: WFSConfig,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def get_features(self) -> dict[str, Any]:
        """Fetch every feature of the type as a GeoJSON FeatureCollection."""
        params = {
            "service": "WFS",
            "version": "1.0.0",
            "request": "GetFeature",
            "typeName": self.config.qualified_type_name,
            "outputFormat": "application/json",
        }
        resp = await self.http.get(self.config.wfs_url, params=params)
        resp.raise_for_status()
        data = resp.json()
        logger.info(
            "GetFeature %s returned %d features",
            self.config.qualified_type_name,
            len(data.get("features") or []),
        )
        return data

    async def describe_feature_type(self) -> str:
        """Fetch the XML schema document describing the feature type."""
        params = {
            "service": "WFS",
            "version": "1.1.0",
            "request": "DescribeFeatureType",
            "typeName": self.config.qualified_type_name,
        }
        resp = await self.http.get(self.config.wfs_url, params=params)
        resp.raise_for_status()
        return resp.text

    async def transaction(self, body: str) -> str:
        """POST a WFS-T document and return the raw response text.

        Error status codes are not raised: the body is still the service's
        answer and gets classified by the caller.
        """
        resp = await self.http.post(
            self.config.wfs_url,
            content=body.encode("utf-8"),
            headers={"Content-Type": "text/xml; charset=utf-8"},
        )
        if resp.status_code >= 400:
            logger.warning("Transaction returned HTTP %d", resp.status_code)
        return resp.text

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "WFSClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

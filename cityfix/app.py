"""CityFixApp — owns every stateful component of the client.

The feature store, filter state, namespace cache and reporting session all
live on one object, each with a single writer:

  FeatureStore     ← initial load (``load``) and ReportingWorkflow
  FilterState      ← FilterEngine.toggle
  namespace cache  ← NamespaceResolver
  session          ← ReportingWorkflow
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from cityfix.core.config import DEFAULT_CONFIG, CityFixConfig
from cityfix.core.exceptions import BulkLoadError
from cityfix.features.filters import FilterEngine
from cityfix.features.layer import MarkerLayer
from cityfix.features.loader import parse_feature_collection
from cityfix.features.store import FeatureStore
from cityfix.reporting.workflow import ReportingWorkflow
from cityfix.wfs.client import WFSClient
from cityfix.wfs.namespace import NamespaceResolver
from cityfix.wfs.transaction import TransactionBuilder

logger = logging.getLogger("cityfix.app")


class CityFixApp:
    """Coordinating context for one map client.

    Usage::

        async with CityFixApp() as app:
            await app.load()
            app.filters.toggle("status", "resolved", False)
            app.workflow.arm()
            app.workflow.pick_location(51.96, 7.62)
            result = await app.workflow.submit()
    """

    def __init__(
        self,
        config: CityFixConfig = DEFAULT_CONFIG,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.client = WFSClient(config.wfs, http=http)
        self.resolver = NamespaceResolver(self.client)
        self.layer = MarkerLayer()
        self.store = FeatureStore()
        self.filters = FilterEngine(self.store, self.layer)
        self.builder = TransactionBuilder(
            self.client,
            self.resolver,
            description_max_length=config.description_max_length,
        )
        self.workflow = ReportingWorkflow(self.builder, self.store, self.filters)

    async def load(self) -> int:
        """Fetch all issues from the WFS and show those passing the filters.

        Raises ``BulkLoadError`` if the request or the JSON decoding fails or
        the body is not a JSON object; malformed features and repeated ids
        inside a good response are skipped.
        """
        try:
            payload = await self.client.get_features()
        except (httpx.HTTPError, ValueError) as exc:
            raise BulkLoadError(f"Could not load issues from the WFS: {exc}") from exc
        if not isinstance(payload, dict):
            raise BulkLoadError(
                "Could not load issues from the WFS: expected a FeatureCollection, "
                f"got {type(payload).__name__}"
            )

        issues = parse_feature_collection(payload, skip_ids=self.store)
        count = self.store.bulk_load(
            (issue, self.layer.create_handle(issue)) for issue in issues
        )
        self.filters.recompute()
        logger.info("Map populated with %d issues", count)
        return count

    def visible_geojson(self) -> dict[str, Any]:
        return self.layer.to_geojson()

    def map_view(self) -> dict[str, Any]:
        """Initial view and background layers, fitted to loaded issues."""
        m = self.config.map
        return {
            "center": [m.center_lat, m.center_lon],
            "zoom": m.zoom,
            "basemap": {"url": m.basemap_url, "attribution": m.basemap_attribution},
            "wms": {
                "url": m.wms_url,
                "layers": m.wms_layers,
                "format": "image/png",
                "transparent": True,
                "version": "1.1.1",
            },
            "bounds": self.store.bounds(pad=m.fit_padding),
        }

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "CityFixApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

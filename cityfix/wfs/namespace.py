"""Namespace discovery for the remote feature type.

WFS-T inserts must qualify the feature type with the namespace URI the
service assigned to its workspace. The URI is read once from the
DescribeFeatureType schema and cached for the lifetime of the resolver.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

import httpx

from cityfix.wfs.client import WFSClient

logger = logging.getLogger("cityfix.wfs.namespace")

_TARGET_NS_RE = re.compile(r'targetNamespace="([^"]+)"')


def extract_namespace(schema_text: str) -> Optional[str]:
    """Return the first ``targetNamespace`` attribute value, or None."""
    match = _TARGET_NS_RE.search(schema_text)
    return match.group(1) if match else None


class NamespaceResolver:
    """Resolves and caches the feature type namespace.

    Resolution never fails: a missing attribute or a failed request falls
    back to the configured default namespace, which is then cached like a
    discovered one. Concurrent callers share a single in-flight request.
    """

    def __init__(self, client: WFSClient, default_namespace: Optional[str] = None):
        self.client = client
        self.default_namespace = default_namespace or client.config.default_namespace
        self._namespace: Optional[str] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def cached(self) -> Optional[str]:
        return self._namespace

    async def resolve(self) -> str:
        if self._namespace is not None:
            logger.debug("Namespace cache hit: %s", self._namespace)
            return self._namespace

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._fetch())
        # shield: a cancelled caller must not cancel the shared request
        return await asyncio.shield(self._pending)

    async def _fetch(self) -> str:
        try:
            schema = await self.client.describe_feature_type()
            namespace = extract_namespace(schema)
            if namespace is None:
                logger.warning(
                    "No targetNamespace in schema; using default %s",
                    self.default_namespace,
                )
                namespace = self.default_namespace
            else:
                logger.info("Resolved namespace: %s", namespace)
        except httpx.HTTPError as exc:
            logger.warning(
                "DescribeFeatureType failed (%s); using default %s",
                exc,
                self.default_namespace,
            )
            namespace = self.default_namespace

        self._namespace = namespace
        self._pending = None
        return namespace

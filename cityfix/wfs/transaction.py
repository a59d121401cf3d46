"""WFS-T insert construction and response classification.

The service gives no strict, machine-checkable acknowledgement for an
insert, so responses are classified by an ordered list of keyword rules:

  1. an insert-count or TransactionResponse marker   → Success
  2. "Exception" or "error" (case-sensitive)          → Failure
  3. anything else                                    → Success (optimistic)

Rule 3 is a known weak point: a body that reports a failure in other words
is taken as a success. It mirrors what the service has been observed to
return and must not be tightened without checking the real service.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

import httpx

from cityfix.core.config import WFSConfig
from cityfix.core.models import (
    Issue,
    Status,
    SubmissionFailure,
    SubmissionResult,
    SubmissionSuccess,
)
from cityfix.wfs.client import WFSClient
from cityfix.wfs.namespace import NamespaceResolver

logger = logging.getLogger("cityfix.wfs.transaction")

WFS_NS = "http://www.opengis.net/wfs"
GML_NS = "http://www.opengis.net/gml"

# Service-side column name; the schema truncates "description".
DESCRIPTION_FIELD = "descriptio"

_FID_RE = re.compile(r'fid="([^"]+)"')


# ── Response Classification ─────────────────────────────────────────────


@dataclass(frozen=True)
class ResponseRule:
    """Fires when any of its markers occurs in the response text."""

    name: str
    markers: tuple[str, ...]
    success: bool
    message: str

    def matches(self, text: str) -> bool:
        return any(marker in text for marker in self.markers)


RESPONSE_RULES: tuple[ResponseRule, ...] = (
    ResponseRule(
        name="inserted",
        markers=('totalInserted="1"', 'TotalInserted="1"', "TransactionResponse"),
        success=True,
        message="Issue saved.",
    ),
    ResponseRule(
        name="server_error",
        markers=("Exception", "error"),
        success=False,
        message="Server reported an error while saving the issue.",
    ),
)

DEFAULT_SUCCESS_MESSAGE = "Issue submitted."


def classify_response(text: str) -> SubmissionResult:
    """Classify a raw transaction response; the first matching rule wins."""
    for rule in RESPONSE_RULES:
        if rule.matches(text):
            logger.debug("Response rule '%s' fired", rule.name)
            if rule.success:
                return SubmissionSuccess(message=rule.message)
            return SubmissionFailure(message=rule.message)
    return SubmissionSuccess(message=DEFAULT_SUCCESS_MESSAGE)


def extract_fid(text: str) -> str | None:
    match = _FID_RE.search(text)
    return match.group(1) if match else None


# ── Request Construction ────────────────────────────────────────────────


def build_insert_request(
    issue: Issue,
    namespace: str,
    config: WFSConfig,
    description_max_length: int = 254,
) -> str:
    """Serialize one issue as a WFS 1.1.0 ``Transaction``/``Insert`` document.

    The status is always written as ``open``; the geometry is a GML point
    with ``lon,lat`` coordinates.
    """
    prefix = config.workspace
    root = ET.Element(
        "wfs:Transaction",
        {
            "service": "WFS",
            "version": "1.1.0",
            "xmlns:wfs": WFS_NS,
            "xmlns:gml": GML_NS,
            f"xmlns:{prefix}": namespace,
        },
    )
    insert = ET.SubElement(root, "wfs:Insert")
    feature = ET.SubElement(insert, f"{prefix}:{config.type_name}")

    geom = ET.SubElement(feature, f"{prefix}:{config.geometry_field}")
    point = ET.SubElement(geom, "gml:Point", {"srsName": config.srs_name})
    coords = ET.SubElement(
        point, "gml:coordinates", {"decimal": ".", "cs": ",", "ts": " "}
    )
    coords.text = f"{issue.location.lon},{issue.location.lat}"

    fields = (
        ("id", issue.id),
        ("category", issue.category),
        ("status", Status.OPEN.value),
        ("severity", str(issue.severity)),
        (DESCRIPTION_FIELD, issue.description[:description_max_length]),
        ("timestamp", issue.timestamp),
    )
    for name, value in fields:
        ET.SubElement(feature, f"{prefix}:{name}").text = value

    return ET.tostring(root, encoding="unicode")


# ── Builder ─────────────────────────────────────────────────────────────


class TransactionBuilder:
    """Submits new issues to the service as WFS-T inserts.

    Usage::

        builder = TransactionBuilder(client, resolver)
        result = await builder.submit(issue)
        if result.ok:
            ...
    """

    def __init__(
        self,
        client: WFSClient,
        resolver: NamespaceResolver,
        description_max_length: int = 254,
    ):
        self.client = client
        self.resolver = resolver
        self.description_max_length = description_max_length

    async def submit(self, issue: Issue) -> SubmissionResult:
        """Resolve the namespace, send the insert and classify the answer.

        Transport failures come back as ``SubmissionFailure(transport=True)``;
        nothing is raised and nothing is retried.
        """
        namespace = await self.resolver.resolve()
        body = build_insert_request(
            issue, namespace, self.client.config, self.description_max_length
        )

        try:
            text = await self.client.transaction(body)
        except httpx.HTTPError as exc:
            reason = str(exc) or exc.__class__.__name__
            logger.warning("Transaction for %s failed: %s", issue.id, reason)
            return SubmissionFailure(
                message=f"Could not reach the feature service: {reason}",
                transport=True,
            )

        result = classify_response(text)
        if isinstance(result, SubmissionSuccess):
            result.issue = issue
            result.server_fid = extract_fid(text)
            logger.info(
                "Issue %s submitted (fid=%s): %s",
                issue.id,
                result.server_fid,
                result.message,
            )
        else:
            logger.warning("Issue %s rejected: %s", issue.id, text[:200])
        return result

"""Shared test fixtures for the CityFix test suite."""

from __future__ import annotations

import httpx
import pytest

from cityfix.core.config import DEFAULT_CONFIG
from cityfix.core.models import Issue, Location

SCHEMA_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<xsd:schema xmlns:xsd="http://www.w3.org/2001/XMLSchema" '
    'xmlns:cityfix="http://cityfix.muenster.de" '
    'elementFormDefault="qualified" '
    'targetNamespace="http://cityfix.muenster.de">'
    "</xsd:schema>"
)

INSERT_OK = (
    '<wfs:TransactionResponse xmlns:wfs="http://www.opengis.net/wfs" version="1.1.0">'
    "<wfs:TransactionSummary><wfs:totalInserted>1</wfs:totalInserted>"
    "</wfs:TransactionSummary><wfs:InsertResults><wfs:Feature>"
    '<ogc:FeatureId fid="Münster-Issues.42"/></wfs:Feature></wfs:InsertResults>'
    "</wfs:TransactionResponse>"
)

INSERT_EXCEPTION = (
    '<ows:ExceptionReport xmlns:ows="http://www.opengis.net/ows" version="1.0.0">'
    '<ows:Exception exceptionCode="InvalidParameterValue">'
    "<ows:ExceptionText>Feature type not writable</ows:ExceptionText>"
    "</ows:Exception></ows:ExceptionReport>"
)


def feature(fid, category="roadwork", status="open", severity=3, coords=(7.62, 51.96)):
    return {
        "type": "Feature",
        "id": f"Münster-Issues.{fid}",
        "geometry": {"type": "Point", "coordinates": list(coords)},
        "properties": {
            "id": fid,
            "category": category,
            "status": status,
            "severity": severity,
            "descriptio": f"issue {fid}",
            "timestamp": "2024-05-01T10:00:00",
        },
    }


SAMPLE_FEATURES = [
    feature("a1", "broken_light", "open", 1, (7.60, 51.95)),
    feature("a2", "roadwork", "in_progress", 3, (7.63, 51.97)),
    feature("a3", "blockage", "resolved", 5, (7.65, 51.96)),
]


class FakeWFS:
    """``httpx.MockTransport`` handler standing in for GeoServer.

    ``fail`` may contain ``"load"`` (GetFeature → HTTP 500), ``"describe"``
    (DescribeFeatureType connection error) and ``"transaction"`` (POST
    connection error).
    """

    def __init__(
        self,
        features=None,
        schema=SCHEMA_XML,
        transaction_text=INSERT_OK,
        fail=(),
    ):
        self.features = SAMPLE_FEATURES if features is None else features
        self.schema = schema
        self.transaction_text = transaction_text
        self.fail = set(fail)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            if "transaction" in self.fail:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text=self.transaction_text)

        kind = request.url.params.get("request")
        if kind == "GetFeature":
            if "load" in self.fail:
                return httpx.Response(500, text="internal error")
            return httpx.Response(
                200, json={"type": "FeatureCollection", "features": self.features}
            )
        if kind == "DescribeFeatureType":
            if "describe" in self.fail:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text=self.schema)
        return httpx.Response(400, text="unknown request")

    def count(self, kind: str) -> int:
        if kind == "Transaction":
            return sum(1 for r in self.requests if r.method == "POST")
        return sum(1 for r in self.requests if r.url.params.get("request") == kind)

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def config():
    return DEFAULT_CONFIG


@pytest.fixture
def fake_wfs():
    return FakeWFS()


@pytest.fixture
def make_issue():
    def _make(
        issue_id="i1",
        category="roadwork",
        status="open",
        severity=3,
        description="Pothole",
        lat=51.96,
        lon=7.62,
    ):
        return Issue(
            id=issue_id,
            category=category,
            status=status,
            severity=severity,
            description=description,
            timestamp="2024-05-01T10:00:00",
            location=Location(lat=lat, lon=lon),
        )

    return _make

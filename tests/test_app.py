"""Integration tests for CityFixApp: bulk load and the end-to-end report flow."""

import asyncio

import httpx
import pytest
from conftest import FakeWFS, feature

from cityfix.app import CityFixApp
from cityfix.core.exceptions import BulkLoadError
from cityfix.core.models import SubmissionSuccess


class TestLoad:
    def test_populates_store_and_layer(self):
        app = CityFixApp(http=FakeWFS().http())
        assert asyncio.run(app.load()) == 3
        assert len(app.store) == 3
        assert len(app.visible_geojson()["features"]) == 3

    def test_sends_get_feature(self):
        fake = FakeWFS()
        asyncio.run(CityFixApp(http=fake.http()).load())
        params = fake.requests[0].url.params
        assert params["request"] == "GetFeature"
        assert params["typeName"] == "cityfix:Münster-Issues"
        assert params["outputFormat"] == "application/json"

    def test_skips_malformed_features(self):
        bad = feature("bad")
        bad["geometry"] = None
        fake = FakeWFS(features=[feature("ok"), bad])
        app = CityFixApp(http=fake.http())
        assert asyncio.run(app.load()) == 1

    def test_http_error_raises_bulk_load_error(self):
        app = CityFixApp(http=FakeWFS(fail={"load"}).http())
        with pytest.raises(BulkLoadError):
            asyncio.run(app.load())
        assert len(app.store) == 0

    def test_invalid_json_raises_bulk_load_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>login</html>")

        app = CityFixApp(http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(BulkLoadError):
            asyncio.run(app.load())

    def test_non_object_json_raises_bulk_load_error(self):
        def handler(request):
            return httpx.Response(200, json=[])

        app = CityFixApp(http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(BulkLoadError):
            asyncio.run(app.load())
        assert len(app.store) == 0

    def test_duplicate_ids_skipped(self):
        anonymous = [feature("x1"), feature("x2")]
        for f in anonymous:
            del f["id"]
            del f["properties"]["id"]
        fake = FakeWFS(
            features=[feature("dup"), feature("dup", category="blockage"), feature("other")]
            + anonymous
        )
        app = CityFixApp(http=fake.http())
        assert asyncio.run(app.load()) == 3
        assert [issue.id for issue, _ in app.store.all()] == ["dup", "other", ""]
        assert app.store.get("dup")[0].category == "roadwork"
        assert len(app.visible_geojson()["features"]) == 3

    def test_reload_skips_known_ids(self):
        app = CityFixApp(http=FakeWFS().http())

        async def scenario():
            first = await app.load()
            second = await app.load()
            return first, second

        assert asyncio.run(scenario()) == (3, 0)
        assert len(app.store) == 3
        assert len(app.layer.attached) == 3

    def test_map_view_fits_loaded_issues(self):
        app = CityFixApp(http=FakeWFS().http())
        assert app.map_view()["bounds"] is None
        asyncio.run(app.load())
        view = app.map_view()
        assert view["center"] == [51.962, 7.625]
        min_lon, min_lat, max_lon, max_lat = view["bounds"]
        assert min_lon < 7.60 and max_lon > 7.65
        assert min_lat < 51.95 and max_lat > 51.97


class TestEndToEnd:
    def test_report_roadwork(self):
        fake = FakeWFS(features=[])

        async def scenario():
            async with CityFixApp(http=fake.http()) as app:
                await app.load()
                app.workflow.arm()
                app.workflow.pick_location(51.96, 7.62)
                app.workflow.update_draft(category="roadwork", severity=5)
                result = await app.workflow.submit()
                return app, result

        app, result = asyncio.run(scenario())

        assert isinstance(result, SubmissionSuccess)
        entries = app.store.all()
        assert len(entries) == 1
        issue, handle = entries[0]
        assert issue.status == "open"
        assert issue.category == "roadwork"
        assert issue.severity == 5
        assert (issue.location.lat, issue.location.lon) == (51.96, 7.62)
        assert app.filters.is_visible(issue)
        assert app.layer.is_attached(handle)
        assert [f["id"] for f in app.visible_geojson()["features"]] == [issue.id]

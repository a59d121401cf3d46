"""CityFix — map client for geo-tagged municipal issue reports.

Loads issues from a GeoServer WFS, filters them by category and status,
and submits new reports as WFS-T inserts::

    from cityfix import CityFixApp

    async with CityFixApp() as app:
        await app.load()
        app.workflow.arm()
        app.workflow.pick_location(51.96, 7.62)
        result = await app.workflow.submit()
"""

__version__ = "1.0.0"

from cityfix.app import CityFixApp

__all__ = ["CityFixApp", "__version__"]

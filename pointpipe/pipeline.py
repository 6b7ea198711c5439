"""Function-style entry points for the four pipeline stages.

Each stage takes a PointSet (or raw coordinates) and returns a new PointSet,
so the stages chain in order: build -> transform -> with_attribute / filter_points -> write.

Examples:
    >>> from pointpipe import pipeline
    >>> from pointpipe.exporters import GeoFormat
    >>>
    >>> plots = pipeline.build(
    ...     [-113.997, -113.998, -113.999], [46.723, 46.719, 46.717], crs=4326
    ... )
    >>> plots = pipeline.with_attribute(plots, "veg_class", ["forest", "draw", "forest"])
    >>> forest = pipeline.filter_points(plots, lambda p, row: row["veg_class"] == "forest")
    >>> pipeline.write(pipeline.transform(forest, 26911), "forest.shp", GeoFormat.SHAPEFILE)
    >>> pipeline.write(forest, "forest.kml", GeoFormat.KML)
"""

from typing import Any, Callable, Dict, Sequence

from pointpipe.constructs.point import GeoPoint
from pointpipe.constructs.point_set import PointSet
from pointpipe.exporters.geo_exporter import read, write

__all__ = ["build", "transform", "with_attribute", "filter_points", "write", "read"]


def build(xs: Sequence[float], ys: Sequence[float], crs: int) -> PointSet:
    """Build a point set where point i is (xs[i], ys[i]) in reference system `crs`."""
    return PointSet.from_xy(xs, ys, crs)


def transform(pointset: PointSet, target: int) -> PointSet:
    """Reproject a point set into the `target` reference system."""
    return pointset.to_crs(target)


def with_attribute(pointset: PointSet, name: str, values: Sequence[Any]) -> PointSet:
    """Bind an attribute to the points by position, replacing any existing one."""
    return pointset.with_attribute(name, values)


def filter_points(
    pointset: PointSet, predicate: Callable[[GeoPoint, Dict[str, Any]], bool]
) -> PointSet:
    """Keep the points the predicate accepts, in their original order."""
    return pointset.filter(predicate)

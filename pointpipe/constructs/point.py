from __future__ import annotations

from typing import NamedTuple

from shapely.geometry import Point

from pointpipe.utils.crs import resolve_crs


class GeoPoint(NamedTuple):
    """
    A single coordinate pair tagged with the reference system it is expressed in.

    The meaning of x and y (degrees or linear units) is only defined by the crs, so
    the two always travel together. x is always the first axis that was supplied
    (longitude in geographic systems, easting in projected systems) and y the second.

    Attributes:
        x: The x-coordinate value (longitude or easting)
        y: The y-coordinate value (latitude or northing)
        crs: The integer EPSG code of the reference system

    Examples:
        >>> from pointpipe.constructs.point import GeoPoint
        >>> p = GeoPoint(-113.997, 46.723, 4326)
        >>> p.is_geographic
        True
        >>> p.geom.wkt
        'POINT (-113.997 46.723)'
    """

    x: float
    y: float
    crs: int

    def __repr__(self):
        return f"GeoPoint(x={self.x}, y={self.y}, crs=EPSG:{self.crs})"

    @property
    def geom(self) -> Point:
        return Point(self.x, self.y)

    @property
    def is_geographic(self) -> bool:
        return resolve_crs(self.crs).is_geographic

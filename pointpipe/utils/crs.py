"""Coordinate Reference System (CRS) constants and lookups used throughout pointpipe.

Reference systems are identified by integer EPSG codes. This module defines the
standard codes used by the pipeline:
- LATLON_CRS: WGS84 geographic coordinates (EPSG:4326)
- UTM_11N_CRS: NAD83 / UTM zone 11N projected coordinates (EPSG:26911)
"""

import numbers
from functools import lru_cache
from typing import Optional

from pyproj import CRS
from pyproj.exceptions import CRSError

from pointpipe.errors import UnknownReferenceSystem

# WGS84 latitude/longitude coordinate system (EPSG:4326)
# x is longitude, y is latitude, both in decimal degrees
LATLON_CRS = 4326

# NAD83 / UTM zone 11N (EPSG:26911)
# Coordinates are in meters (easting, northing)
UTM_11N_CRS = 26911


def resolve_crs(code: int) -> CRS:
    """
    Look up a pyproj CRS from an integer EPSG code.

    Args:
        code: An integer EPSG code, e.g. 4326. numpy integers are accepted too

    Returns:
        The matching pyproj CRS

    Raises:
        UnknownReferenceSystem: If the code is not an integer or is not in the EPSG registry
    """
    if isinstance(code, bool) or not isinstance(code, numbers.Integral):
        raise UnknownReferenceSystem(code, "EPSG codes must be integers")
    return _crs_from_epsg(int(code))


@lru_cache(maxsize=None)
def _crs_from_epsg(code: int) -> CRS:
    try:
        return CRS.from_epsg(code)
    except CRSError as e:
        raise UnknownReferenceSystem(code) from e


def is_geographic(code: int) -> bool:
    """True if the EPSG code denotes an angular (degrees) coordinate system."""
    return resolve_crs(code).is_geographic


def epsg_code(crs: Optional[CRS]) -> int:
    """
    Recover the integer EPSG code of a pyproj CRS.

    Projection sidecar files often carry ESRI flavoured WKT which pyproj only
    matches to an EPSG entry with reduced confidence, so a looser match is
    tried before giving up.

    Raises:
        UnknownReferenceSystem: If the CRS is missing or has no EPSG equivalent
    """
    if crs is None:
        raise UnknownReferenceSystem(None, "no reference system recorded")
    code = crs.to_epsg()
    if code is None:
        code = crs.to_epsg(min_confidence=25)
    if code is None:
        raise UnknownReferenceSystem(crs.name, "no matching EPSG code")
    return code

from pathlib import Path

from pointpipe.constructs.point import GeoPoint
from pointpipe.constructs.point_set import PointSet
from pointpipe.exporters import GeoFormat


def package_root() -> Path:
    return Path(__file__).parent


__all__ = ["GeoFormat", "GeoPoint", "PointSet", "package_root"]

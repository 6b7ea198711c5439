from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pointpipe.constructs.point_set import PointSet
from pointpipe.exporters.exporter_interface import ExporterInterface
from pointpipe.exporters.kml import KMLExporter
from pointpipe.exporters.shapefile import ShapefileExporter


class GeoFormat(Enum):
    """
    The file formats a PointSet can be written to and read from.

    Attributes:
        SHAPEFILE: ESRI Shapefile; points, attribute table and a .prj projection sidecar
        KML: Keyhole Markup Language; points with typed extended data, always EPSG:4326
    """

    SHAPEFILE = "shapefile"
    KML = "kml"

    @classmethod
    def from_string(cls, s: str) -> GeoFormat:
        """
        Create a GeoFormat from a string
        """
        for f in cls:
            if f.value == s.lower():
                return f
        raise ValueError(
            f"Unknown format: {s}. Valid values are {[f.value for f in cls]}"
        )

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> GeoFormat:
        """
        Guess the format from a file suffix (.shp or .kml)
        """
        suffix = Path(path).suffix.lower()
        for f in cls:
            if exporter_for(f).suffix == suffix:
                return f
        raise ValueError(f"Cannot infer a file format from suffix '{suffix}' of {path}")


def exporter_for(format: Union[GeoFormat, str]) -> ExporterInterface:
    """Get the exporter that handles a file format."""
    if isinstance(format, str):
        format = GeoFormat.from_string(format)
    if format is GeoFormat.SHAPEFILE:
        return ShapefileExporter()
    elif format is GeoFormat.KML:
        return KMLExporter()
    raise ValueError(f"No exporter for format {format}")


def write(
    pointset: PointSet, path: Union[str, Path], format: Union[GeoFormat, str]
) -> None:
    """
    Write a point set to a geospatial file.

    The file is written atomically: on failure nothing is left at `path`. Writing does
    not change the point set.

    Args:
        pointset: The points and attributes to write
        path: The destination file; must end in .shp for SHAPEFILE or .kml for KML
        format: The file format, as a GeoFormat or its string value

    Raises:
        EmptyDataset: If the point set has no points
        UnsupportedAttribute: If an attribute cannot be stored by the format
        IOFailure: If the destination cannot be written

    Examples:
        >>> write(plots.to_crs(26911), 'plots.shp', GeoFormat.SHAPEFILE)
        >>> write(plots, 'plots.kml', 'kml')
    """
    exporter_for(format).write(pointset, path)


def read(
    path: Union[str, Path], format: Optional[Union[GeoFormat, str]] = None
) -> PointSet:
    """
    Read a point set from a geospatial file.

    Args:
        path: The file to read
        format: The file format. If None, it is inferred from the file suffix.

    Returns:
        A PointSet with points in stored order, the stored attributes and the
        recorded reference system (always EPSG:4326 for KML)

    Raises:
        IOFailure: If the file is missing or cannot be parsed
        UnknownReferenceSystem: If a shapefile has no usable projection sidecar
    """
    if format is None:
        format = GeoFormat.from_path(path)
    return exporter_for(format).read(path)

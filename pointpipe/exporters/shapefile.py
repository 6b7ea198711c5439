from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Union

from geopandas import read_file
from pandas.api.types import is_bool_dtype
from pyogrio.errors import DataLayerError, DataSourceError

from pointpipe.constructs.point_set import PointSet
from pointpipe.errors import IOFailure, UnsupportedAttribute
from pointpipe.exporters.exporter_interface import ExporterInterface, staged_write
from pointpipe.utils.keys import SHAPEFILE_ENCODING, SHAPEFILE_MAX_FIELD_LENGTH

log = logging.getLogger(__name__)

SHAPEFILE_DRIVER = "ESRI Shapefile"
PLACEHOLDER_FIELD = "FID"


def field_kind(name: str, values: List[Any]) -> str:
    """
    Find the single dBASE field kind able to hold every non-missing value of a column.

    Args:
        name: The attribute name, used in error messages
        values: The attribute values as returned by PointSet.attributes

    Returns:
        One of "bool", "number" or "string"; "string" for an all-missing column

    Raises:
        UnsupportedAttribute: if a value is not a bool, number or string, or the
            column mixes those kinds
    """
    kinds = set()
    for value in values:
        if value is None:
            continue
        if isinstance(value, bool):
            kinds.add("bool")
        elif isinstance(value, (int, float)):
            kinds.add("number")
        elif isinstance(value, str):
            kinds.add("string")
        else:
            raise UnsupportedAttribute(
                f"shapefile attribute {name!r} holds a {type(value).__name__} value "
                f"({value!r}); only bools, numbers and strings can be stored"
            )
    if len(kinds) > 1:
        raise UnsupportedAttribute(
            f"shapefile attribute {name!r} mixes {sorted(kinds)} values; "
            f"a dBASE field holds a single kind"
        )
    return kinds.pop() if kinds else "string"


class ShapefileExporter(ExporterInterface):
    """
    Writes and reads point sets as ESRI Shapefiles through geopandas and pyogrio.

    A shapefile is a group of files sharing one name: the geometries (.shp, .shx),
    the attribute table (.dbf), its encoding (.cpg) and a projection sidecar (.prj)
    recording the reference system. Coordinates are stored in the point set's own
    reference system.

    The attribute table limits what can be stored:
    - Field names longer than 10 bytes once UTF-8 encoded are rejected rather than
      truncated, so "höhe_klass" (10 characters, 11 bytes) is refused.
    - dBASE field names are case-insensitive: names differing only by case, and the
      name FID (reserved for the placeholder GDAL writes), are rejected.
    - Each column must hold one kind of value: bools, numbers or strings. Mixed
      columns and other types (dates, lists, ...) are rejected.
    - Boolean attributes are stored as integers 0/1 and read back as integers.
    - Integer and real attributes keep their kind; strings stay strings.
    - dBASE does not tell an empty text field from a missing one, so "" reads back
      as None.
    """

    @property
    def suffix(self) -> str:
        return ".shp"

    def _check_field_names(self, names: List[str]) -> None:
        too_long = [
            name
            for name in names
            if len(name.encode(SHAPEFILE_ENCODING)) > SHAPEFILE_MAX_FIELD_LENGTH
        ]
        if too_long:
            raise UnsupportedAttribute(
                f"shapefile field names are limited to {SHAPEFILE_MAX_FIELD_LENGTH} "
                f"bytes but found {too_long}"
            )

        seen = {}
        for name in names:
            key = name.lower()
            if key == PLACEHOLDER_FIELD.lower():
                raise UnsupportedAttribute(
                    f"shapefile field name {name!r} is reserved for the feature id"
                )
            if key in seen:
                raise UnsupportedAttribute(
                    f"shapefile field names {seen[key]!r} and {name!r} differ only "
                    f"by case"
                )
            seen[key] = name

    def write(self, pointset: PointSet, path: Union[str, Path]) -> None:
        path = self._check_writable(pointset, path)
        self._check_field_names(pointset.attribute_names)

        attributes = pointset.attributes
        for name in pointset.attribute_names:
            field_kind(name, attributes[name])

        frame = pointset.to_geodataframe()
        for name in pointset.attribute_names:
            if is_bool_dtype(frame[name].dtype):
                frame[name] = frame[name].astype("int64")

        with staged_write(path) as staging:
            try:
                frame.to_file(
                    staging / path.name,
                    driver=SHAPEFILE_DRIVER,
                    engine="pyogrio",
                    encoding=SHAPEFILE_ENCODING,
                )
            except (DataSourceError, DataLayerError) as e:
                raise IOFailure(f"could not write shapefile {path}: {e}") from e

    def read(self, path: Union[str, Path]) -> PointSet:
        path = self._check_readable(path)

        try:
            frame = read_file(path, engine="pyogrio")
        except (DataSourceError, DataLayerError) as e:
            raise IOFailure(f"could not read shapefile {path}: {e}") from e

        log.debug(f"read {len(frame)} points from {path}")

        # GDAL adds a placeholder FID field to shapefiles written without attributes;
        # write refuses FID as an attribute name so this never drops real data
        columns = [c for c in frame.columns if c != frame.geometry.name]
        if columns == [PLACEHOLDER_FIELD] and (
            frame[PLACEHOLDER_FIELD].tolist() == list(range(len(frame)))
        ):
            frame = frame.drop(columns=PLACEHOLDER_FIELD)

        return PointSet(frame)

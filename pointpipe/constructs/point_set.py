from __future__ import annotations

import logging
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from geopandas import GeoDataFrame, points_from_xy
from pandas.api.types import is_numeric_dtype
from pyproj import Transformer
from pyproj.exceptions import ProjError

from pointpipe.constructs.point import GeoPoint
from pointpipe.errors import EmptyDataset, ShapeMismatch, UnsupportedTransform
from pointpipe.utils.crs import epsg_code, resolve_crs
from pointpipe.utils.keys import (
    DEFAULT_GEOMETRY_KEY,
    DEFAULT_X_COLUMN,
    DEFAULT_Y_COLUMN,
)

log = logging.getLogger(__name__)


@lru_cache(maxsize=64)
def _transformer(source: int, target: int) -> Transformer:
    return Transformer.from_crs(
        resolve_crs(source), resolve_crs(target), always_xy=True
    )


def _values(column: pd.Series) -> list:
    if is_numeric_dtype(column.dtype):
        return column.tolist()
    return column.astype(object).where(column.notna(), None).tolist()


def _same_value(a: Any, b: Any) -> bool:
    # missing numeric values are NaN, which never compares equal to itself
    if isinstance(a, float) and isinstance(b, float) and np.isnan(a) and np.isnan(b):
        return True
    return a == b


class PointSet:
    """
    An ordered collection of points sharing one reference system, with optional
    attribute columns aligned to the points by position.

    A PointSet wraps a GeoDataFrame of Point geometries. The constructor checks the
    shape rules explicitly: the frame must carry a CRS with an EPSG code and every
    geometry must be a Point. The index is always reset to positions 0..n-1 since
    point order, not labels, identifies a point.

    PointSets are values: transforming, joining and filtering all return a new
    PointSet and leave the original untouched.

    Attributes:
        points: A list of GeoPoint objects, one per point, in order
        crs: The integer EPSG code of the reference system
        attributes: A mapping of attribute name to the list of values for each point

    Examples:
        >>> from pointpipe.constructs.point_set import PointSet
        >>>
        >>> plots = PointSet.from_xy(
        ...     [-113.997, -113.998, -113.999], [46.723, 46.719, 46.717], crs=4326
        ... )
        >>> plots = plots.with_attribute("veg_class", ["forest", "draw", "forest"])
        >>> forest = plots.where("veg_class", "forest")
        >>> len(forest)
        2
        >>> utm = forest.to_crs(26911)
    """

    _frame: GeoDataFrame

    def __init__(self, frame: GeoDataFrame):
        code = epsg_code(frame.crs)

        geoms = frame.geometry
        if geoms.isna().any():
            raise ValueError("PointSet cannot hold missing geometries")
        if not (geoms.geom_type == "Point").all():
            found = sorted(set(geoms.geom_type) - {"Point"})
            raise TypeError(f"PointSet can only hold Point geometries but found {found}")

        if geoms.name != DEFAULT_GEOMETRY_KEY:
            frame = frame.rename_geometry(DEFAULT_GEOMETRY_KEY)

        frame = frame.set_crs(resolve_crs(code), allow_override=True)
        self._frame = frame.reset_index(drop=True)
        self._crs = code

    def __getitem__(self, i) -> PointSet:
        if isinstance(i, (int, np.integer)):
            i = [i]
        return PointSet(self._frame.iloc[i])

    def __len__(self):
        """Number of points."""
        return len(self._frame)

    def __eq__(self, other):
        if not isinstance(other, PointSet):
            return NotImplemented
        return (
            self.crs == other.crs
            and self.points == other.points
            and self.attribute_names == other.attribute_names
            and all(
                len(mine) == len(theirs)
                and all(_same_value(a, b) for a, b in zip(mine, theirs))
                for mine, theirs in zip(
                    self.attributes.values(), other.attributes.values()
                )
            )
        )

    def __str__(self):
        output_lines = [
            "pointpipe PointSet object",
            f"crs: EPSG:{self.crs}",
            f"attributes: {self.attribute_names}",
            f"frame: {self._frame}",
        ]
        return "\n".join(output_lines)

    def __repr__(self):
        return self.__str__()

    @property
    def crs(self) -> int:
        """Get the EPSG code of the reference system."""
        return self._crs

    @cached_property
    def points(self) -> List[GeoPoint]:
        """
        Get all points as GeoPoint objects tagged with this set's reference system.

        Returns:
            A list with one GeoPoint per point, in the order of the set
        """
        geoms = self._frame.geometry
        return [
            GeoPoint(float(x), float(y), self._crs) for x, y in zip(geoms.x, geoms.y)
        ]

    @property
    def attribute_names(self) -> List[str]:
        return [c for c in self._frame.columns if c != DEFAULT_GEOMETRY_KEY]

    @property
    def attributes(self) -> Dict[str, list]:
        """
        Get every attribute column as a plain python list, keyed by attribute name.

        Each list has exactly one value per point and is index-aligned with `points`.
        Missing values in text columns are None; in numeric columns they are NaN.
        """
        return {name: _values(self._frame[name]) for name in self.attribute_names}

    def rows(self) -> List[Dict[str, Any]]:
        """Get the attributes of each point as one dictionary per point, in order."""
        attributes = self.attributes
        if not attributes:
            return [{} for _ in range(len(self))]
        names = list(attributes)
        return [dict(zip(names, values)) for values in zip(*attributes.values())]

    @classmethod
    def from_xy(
        cls,
        xs: Sequence[float],
        ys: Sequence[float],
        crs: int,
    ) -> PointSet:
        """
        Build a point set from two coordinate sequences and a reference system code.

        The first sequence always supplies x (longitude or easting) and the second y
        (latitude or northing); no axis swapping is ever done.

        Args:
            xs: The x-coordinate of each point
            ys: The y-coordinate of each point. Must be the same length as xs.
            crs: The integer EPSG code that xs and ys are expressed in

        Returns:
            A new PointSet with len(xs) points where point i is (xs[i], ys[i])

        Raises:
            ShapeMismatch: If xs and ys have different lengths
            UnknownReferenceSystem: If crs is not a recognized EPSG code

        Examples:
            >>> ps = PointSet.from_xy([-113.997, -113.998], [46.723, 46.719], crs=4326)
            >>> ps.points[0].x, ps.points[0].y
            (-113.997, 46.723)
        """
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        if len(xs) != len(ys):
            raise ShapeMismatch("coordinate arrays", len(xs), len(ys))

        frame = GeoDataFrame(geometry=points_from_xy(xs, ys), crs=resolve_crs(crs))

        return PointSet(frame)

    @classmethod
    def from_dataframe(
        cls,
        dataframe: pd.DataFrame,
        crs: int,
        x_column: str = DEFAULT_X_COLUMN,
        y_column: str = DEFAULT_Y_COLUMN,
        attribute_columns: Optional[List[str]] = None,
    ) -> PointSet:
        """
        Build a point set from a pandas DataFrame with x/y coordinate columns.

        Rows are taken in their positional order; the DataFrame index is not kept.
        Every other column becomes an attribute unless attribute_columns is given.

        Args:
            dataframe: A pandas DataFrame with one row per point
            crs: The integer EPSG code of the coordinate columns
            x_column: The name of the column holding x values. Default is "x".
            y_column: The name of the column holding y values. Default is "y".
            attribute_columns: The columns to carry as attributes. Default is all non-coordinate columns.

        Returns:
            A new PointSet

        Raises:
            ValueError: If a coordinate or attribute column is not in the DataFrame

        Examples:
            >>> df = pd.DataFrame({
            ...     'lon': [-113.997, -113.998, -113.999],
            ...     'lat': [46.723, 46.719, 46.717],
            ...     'veg_class': ['forest', 'draw', 'forest'],
            ... })
            >>> ps = PointSet.from_dataframe(df, 4326, x_column='lon', y_column='lat')
            >>> ps.attribute_names
            ['veg_class']
        """
        columns = dataframe.columns.to_list()
        if attribute_columns is None:
            attribute_columns = [c for c in columns if c not in (x_column, y_column)]

        missing = [
            c for c in [x_column, y_column, *attribute_columns] if c not in columns
        ]
        if missing:
            raise ValueError(
                f"Could not find columns {missing} in the dataframe; "
                "provide the x/y column names to this function"
            )

        ps = cls.from_xy(dataframe[x_column], dataframe[y_column], crs)
        for name in attribute_columns:
            ps = ps.with_attribute(name, dataframe[name].tolist())

        return ps

    @classmethod
    def from_csv(
        cls,
        file: Union[str, Path],
        crs: int,
        x_column: str = DEFAULT_X_COLUMN,
        y_column: str = DEFAULT_Y_COLUMN,
    ) -> PointSet:
        """
        Build a point set from a CSV file with x/y coordinate columns.

        Args:
            file: Path to the CSV file (as string or Path object)
            crs: The integer EPSG code of the coordinate columns
            x_column: The name of the column holding x values. Default is "x".
            y_column: The name of the column holding y values. Default is "y".

        Returns:
            A new PointSet carrying every other column as an attribute

        Raises:
            FileNotFoundError: If the specified file does not exist
            TypeError: If the file does not have a .csv extension
            ValueError: If the x/y columns are not found in the CSV
        """
        filepath = Path(file)
        if not filepath.is_file():
            raise FileNotFoundError(file)
        elif not filepath.suffix == ".csv":
            raise TypeError(
                f"file of type {filepath.suffix} does not appear to be a csv file"
            )

        df = pd.read_csv(filepath)
        return PointSet.from_dataframe(df, crs, x_column, y_column)

    def to_crs(self, target: int) -> PointSet:
        """
        Reproject the point set to a different reference system.

        Coordinates are transformed with pyproj using x/y axis order on both sides.
        Point count, order and attributes are unchanged. If the target is the current
        reference system the point set itself is returned.

        Args:
            target: The integer EPSG code to transform into

        Returns:
            A new PointSet expressed in the target reference system

        Raises:
            UnknownReferenceSystem: If target is not a recognized EPSG code
            UnsupportedTransform: If pyproj cannot transform between the two systems,
                or the transformation produces non-finite coordinates

        Examples:
            >>> ps = PointSet.from_xy([-113.997], [46.723], crs=4326)
            >>> utm = ps.to_crs(26911)
            >>> utm.crs
            26911
            >>> ps.crs  # the original is unchanged
            4326
        """
        target_crs = resolve_crs(target)
        target = int(target)
        if target == self._crs:
            return self

        attributes = self._frame.drop(columns=DEFAULT_GEOMETRY_KEY)

        if len(self) == 0:
            return PointSet(
                GeoDataFrame(attributes, geometry=points_from_xy([], []), crs=target_crs)
            )

        geoms = self._frame.geometry
        try:
            transformer = _transformer(self._crs, target)
            new_xs, new_ys = transformer.transform(
                geoms.x.to_numpy(), geoms.y.to_numpy(), errcheck=True
            )
        except ProjError as e:
            raise UnsupportedTransform(self._crs, target, str(e)) from e

        new_xs = np.asarray(new_xs, dtype=float)
        new_ys = np.asarray(new_ys, dtype=float)
        if not (np.isfinite(new_xs).all() and np.isfinite(new_ys).all()):
            raise UnsupportedTransform(
                self._crs, target, "transformation produced non-finite coordinates"
            )

        log.debug(f"transformed {len(self)} points EPSG:{self._crs} -> EPSG:{target}")

        new_frame = GeoDataFrame(
            attributes, geometry=points_from_xy(new_xs, new_ys), crs=target_crs
        )
        return PointSet(new_frame)

    def estimate_utm_crs(self) -> int:
        """
        Pick the EPSG code of the UTM zone that covers the points.

        Returns:
            An integer EPSG code of a WGS 84 / UTM zone (326xx north, 327xx south)

        Raises:
            EmptyDataset: If the point set has no points
        """
        if len(self) == 0:
            raise EmptyDataset("cannot estimate a UTM zone for an empty point set")
        return epsg_code(self._frame.estimate_utm_crs())

    def with_attribute(self, name: str, values: Sequence[Any]) -> PointSet:
        """
        Attach an attribute to every point, matched by position.

        If an attribute with the same name already exists it is replaced, not merged.

        Args:
            name: The attribute name
            values: One value per point, in point order

        Returns:
            A new PointSet with the attribute bound to values

        Raises:
            ShapeMismatch: If the number of values differs from the number of points
            ValueError: If name is empty or collides with the geometry column

        Examples:
            >>> ps = PointSet.from_xy([0, 1], [0, 1], crs=4326)
            >>> ps = ps.with_attribute("site", ["a", "b"])
            >>> ps.attributes
            {'site': ['a', 'b']}
        """
        if not isinstance(name, str) or not name:
            raise ValueError(f"attribute name must be a non-empty string, got {name!r}")
        if name == DEFAULT_GEOMETRY_KEY:
            raise ValueError(f"'{DEFAULT_GEOMETRY_KEY}' is reserved for point geometries")

        values = list(values)
        if len(values) != len(self):
            raise ShapeMismatch(f"attribute '{name}'", len(self), len(values))

        new_frame = self._frame.copy()
        new_frame[name] = values

        return PointSet(new_frame)

    def filter(self, predicate: Callable[[GeoPoint, Dict[str, Any]], bool]) -> PointSet:
        """
        Keep the points for which the predicate returns True.

        The predicate is called with each point and its attribute row, in point order.
        Surviving points keep their relative order and all of their attributes. No
        survivors gives an empty PointSet with the same reference system and attribute
        names.

        Args:
            predicate: A function of (GeoPoint, attribute row dict) returning a bool

        Returns:
            A new PointSet holding the survivors

        Examples:
            >>> east = ps.filter(lambda point, row: point.x > -113.998)
        """
        keep = [
            i
            for i, (point, row) in enumerate(zip(self.points, self.rows()))
            if predicate(point, row)
        ]
        return PointSet(self._frame.iloc[keep])

    def where(self, name: str, value: Any) -> PointSet:
        """
        Keep the points whose attribute equals a value.

        Raises:
            KeyError: If the point set has no attribute with that name
        """
        if name not in self.attribute_names:
            raise KeyError(name)
        mask = self._frame[name] == value
        return PointSet(self._frame[mask.to_numpy()])

    def to_geodataframe(self) -> GeoDataFrame:
        """
        Get a copy of the backing GeoDataFrame, e.g. for plotting on a basemap.

        The copy has one Point geometry column named "geometry", the attribute
        columns, a 0..n-1 index and the point set's CRS.
        """
        return self._frame.copy()

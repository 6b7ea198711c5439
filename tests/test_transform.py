from unittest import TestCase
from unittest.mock import Mock, patch

import numpy as np

from pyproj.exceptions import ProjError

from pointpipe.constructs.point_set import PointSet
from pointpipe.errors import UnknownReferenceSystem, UnsupportedTransform
from pointpipe.utils.crs import LATLON_CRS, UTM_11N_CRS, is_geographic, resolve_crs

XS = [-113.997, -113.998, -113.999]
YS = [46.723, 46.719, 46.717]


class TestTransform(TestCase):
    def setUp(self):
        self.plots = PointSet.from_xy(XS, YS, LATLON_CRS).with_attribute(
            "veg_class", ["forest", "draw", "forest"]
        )

    def test_same_crs_is_identity(self):
        same = self.plots.to_crs(LATLON_CRS)

        self.assertIs(same, self.plots)
        self.assertEqual(same.points, self.plots.points)

    def test_latlon_to_utm(self):
        utm = self.plots.to_crs(UTM_11N_CRS)

        self.assertEqual(utm.crs, UTM_11N_CRS)
        self.assertFalse(is_geographic(utm.crs))
        self.assertEqual(len(utm), 3)
        for point in utm.points:
            self.assertEqual(point.crs, UTM_11N_CRS)
            self.assertGreater(point.x, 100_000)
            self.assertLess(point.x, 900_000)
            self.assertGreater(point.y, 5_100_000)
            self.assertLess(point.y, 5_250_000)

        # points run south and west, so order shows up in the projected values
        northings = [p.y for p in utm.points]
        eastings = [p.x for p in utm.points]
        self.assertEqual(northings, sorted(northings, reverse=True))
        self.assertEqual(eastings, sorted(eastings, reverse=True))

    def test_transform_is_reproducible(self):
        first = self.plots.to_crs(UTM_11N_CRS)
        second = self.plots.to_crs(UTM_11N_CRS)

        self.assertEqual(first, second)

    def test_transform_leaves_input_and_attributes_alone(self):
        utm = self.plots.to_crs(UTM_11N_CRS)

        self.assertEqual(self.plots.crs, LATLON_CRS)
        self.assertEqual([(p.x, p.y) for p in self.plots.points], list(zip(XS, YS)))
        self.assertEqual(utm.attributes, self.plots.attributes)

    def test_transform_there_and_back(self):
        back = self.plots.to_crs(UTM_11N_CRS).to_crs(LATLON_CRS)

        for original, returned in zip(self.plots.points, back.points):
            self.assertAlmostEqual(original.x, returned.x, places=9)
            self.assertAlmostEqual(original.y, returned.y, places=9)

    def test_projected_to_projected(self):
        utm11 = self.plots.to_crs(UTM_11N_CRS)

        utm12 = utm11.to_crs(26912)
        direct = self.plots.to_crs(26912)

        for a, b in zip(utm12.points, direct.points):
            self.assertAlmostEqual(a.x, b.x, delta=1e-2)
            self.assertAlmostEqual(a.y, b.y, delta=1e-2)

    def test_empty_transform(self):
        empty = PointSet.from_xy([], [], LATLON_CRS).with_attribute("veg_class", [])

        utm = empty.to_crs(UTM_11N_CRS)

        self.assertEqual(len(utm), 0)
        self.assertEqual(utm.crs, UTM_11N_CRS)
        self.assertEqual(utm.attribute_names, ["veg_class"])

    def test_numpy_integer_codes(self):
        utm = self.plots.to_crs(np.int64(UTM_11N_CRS))

        self.assertEqual(utm, self.plots.to_crs(UTM_11N_CRS))
        self.assertIs(type(utm.crs), int)
        self.assertIs(self.plots.to_crs(np.int32(LATLON_CRS)), self.plots)
        self.assertEqual(resolve_crs(np.int64(LATLON_CRS)), resolve_crs(LATLON_CRS))

        built = PointSet.from_xy(XS, YS, np.int64(LATLON_CRS))
        self.assertEqual(built.crs, LATLON_CRS)
        with self.assertRaises(UnknownReferenceSystem):
            resolve_crs(True)

    def test_unknown_target(self):
        with self.assertRaises(UnknownReferenceSystem):
            self.plots.to_crs(123456789)

    def test_transform_failure(self):
        transformer = Mock()
        transformer.transform.side_effect = ProjError("no operation found")

        with patch(
            "pointpipe.constructs.point_set._transformer", return_value=transformer
        ):
            with self.assertRaises(UnsupportedTransform) as ctx:
                self.plots.to_crs(UTM_11N_CRS)

        self.assertEqual(ctx.exception.source, LATLON_CRS)
        self.assertEqual(ctx.exception.target, UTM_11N_CRS)
        self.assertIn("EPSG:4326", str(ctx.exception))
        self.assertIn("EPSG:26911", str(ctx.exception))

    def test_transform_non_finite_result(self):
        transformer = Mock()
        inf = float("inf")
        transformer.transform.return_value = ([inf, inf, inf], [inf, inf, inf])

        with patch(
            "pointpipe.constructs.point_set._transformer", return_value=transformer
        ):
            with self.assertRaises(UnsupportedTransform):
                self.plots.to_crs(UTM_11N_CRS)

    def test_estimate_utm_crs(self):
        # Missoula sits just east of 114W, in UTM zone 12
        self.assertEqual(self.plots.estimate_utm_crs(), 32612)

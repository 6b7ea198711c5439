import tempfile
from pathlib import Path
from unittest import TestCase

from pointpipe import pipeline
from pointpipe.errors import EmptyDataset
from pointpipe.exporters import GeoFormat
from pointpipe.utils.crs import LATLON_CRS, UTM_11N_CRS


class TestPipeline(TestCase):
    """Run the stages in order, the way a field-plot survey would."""

    def setUp(self):
        self.xs = [-113.997, -113.998, -113.999]
        self.ys = [46.723, 46.719, 46.717]

    def test_build_transform_filter_export(self):
        plots = pipeline.build(self.xs, self.ys, LATLON_CRS)
        plots = pipeline.with_attribute(
            plots, "veg_class", ["forest", "draw", "forest"]
        )
        utm = pipeline.transform(plots, UTM_11N_CRS)

        forest = pipeline.filter_points(
            utm, lambda point, row: row["veg_class"] == "forest"
        )

        self.assertEqual(len(forest), 2)
        self.assertEqual(forest.points, [utm.points[0], utm.points[2]])

        with tempfile.TemporaryDirectory() as tmp:
            shp = Path(tmp) / "forest.shp"
            kml = Path(tmp) / "forest.kml"

            pipeline.write(forest, shp, GeoFormat.SHAPEFILE)
            pipeline.write(pipeline.transform(forest, LATLON_CRS), kml, GeoFormat.KML)

            from_shp = pipeline.read(shp)
            from_kml = pipeline.read(kml)

        self.assertEqual(from_shp.crs, UTM_11N_CRS)
        self.assertEqual(from_shp.attributes, {"veg_class": ["forest", "forest"]})
        for a, b in zip(forest.points, from_shp.points):
            self.assertAlmostEqual(a.x, b.x, delta=1e-6)
            self.assertAlmostEqual(a.y, b.y, delta=1e-6)

        self.assertEqual(from_kml.crs, LATLON_CRS)
        self.assertEqual(from_kml.attributes, {"veg_class": ["forest", "forest"]})
        for i, point in zip((0, 2), from_kml.points):
            self.assertAlmostEqual(point.x, self.xs[i], places=9)
            self.assertAlmostEqual(point.y, self.ys[i], places=9)

    def test_empty_survey_cannot_be_written(self):
        plots = pipeline.build(self.xs, self.ys, LATLON_CRS)
        none = pipeline.filter_points(plots, lambda point, row: False)

        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(EmptyDataset):
                pipeline.write(none, Path(tmp) / "none.shp", GeoFormat.SHAPEFILE)
            with self.assertRaises(EmptyDataset):
                pipeline.write(none, Path(tmp) / "none.kml", GeoFormat.KML)

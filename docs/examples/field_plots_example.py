"""
# Field Plots Example

An example of taking survey plot coordinates from a table through reprojection,
attribute filtering and export to a shapefile and a KML file
"""


def main():
    from pointpipe import package_root

    """
    First, we load the plot locations from a file.
    The pointpipe package ships a small sample of three vegetation plots that we can use for demonstration.

    Before we build the point set, let's take a look at the file to see what the coordinates look like:
    """

    import pandas as pd

    df = pd.read_csv(package_root() / "resources/sample_plots.csv")
    df.head()

    """
    The lon and lat columns are WGS84 longitude and latitude in decimal degrees (EPSG:4326).
    pointpipe never guesses which column is which: x is always the first coordinate (longitude here) and y the second.

    Now, let's build the point set from the same file, carrying the other columns along as attributes:
    """

    from pointpipe.constructs.point_set import PointSet
    from pointpipe.utils.crs import LATLON_CRS, UTM_11N_CRS

    plots = PointSet.from_csv(
        package_root() / "resources/sample_plots.csv",
        crs=LATLON_CRS,
        x_column="lon",
        y_column="lat",
    )
    print(plots)

    """
    Degrees are awkward for measuring distances, so next we project the plots into
    NAD83 / UTM zone 11N, where coordinates are in meters.
    The original point set is left as it was; `to_crs` returns a new one.
    """

    plots_utm = plots.to_crs(UTM_11N_CRS)
    for point in plots_utm.points:
        print(point)

    """
    If you don't know which UTM zone covers your data, pointpipe can pick one:
    """

    print(plots.estimate_utm_crs())

    """
    Attributes can also come from somewhere other than the input table.
    Here we record whether each plot was burned, matched to the plots by position:
    """

    plots_utm = plots_utm.with_attribute("burned", [False, True, False])

    """
    Filtering keeps the points a predicate accepts, in their original order.
    Let's keep only the forested plots:
    """

    forest = plots_utm.filter(lambda point, row: row["veg_class"] == "forest")
    # the same thing, for simple equality tests
    forest = plots_utm.where("veg_class", "forest")
    print(len(forest))

    """
    Finally, we save the forested plots.
    A shapefile keeps the UTM coordinates and records the reference system in its .prj file.
    KML is always longitude/latitude, so pointpipe reprojects back to EPSG:4326 on the way out.
    """

    from pointpipe.exporters import GeoFormat, read, write

    write(forest, "forest_plots.shp", GeoFormat.SHAPEFILE)
    write(forest, "forest_plots.kml", GeoFormat.KML)

    print(read("forest_plots.shp"))
    print(read("forest_plots.kml"))

    """
    To look at the plots on a web map, hand the underlying GeoDataFrame to your plotting library of choice:
    """

    gdf = forest.to_geodataframe()
    gdf.head()


if __name__ == "__main__":
    main()

"""Standard names and limits shared by the point set and the exporters."""

# Name of the point geometry column in the GeoDataFrame backing a PointSet
DEFAULT_GEOMETRY_KEY = "geometry"

# Default coordinate column names when building from a table
DEFAULT_X_COLUMN = "x"
DEFAULT_Y_COLUMN = "y"

# KML 2.2 namespace and the id of the schema holding attribute field types
KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
KML_SCHEMA_ID = "pointpipe"

# dBASE field names (the shapefile attribute table) are limited to 10 bytes in the
# encoding written to the .cpg sidecar
SHAPEFILE_MAX_FIELD_LENGTH = 10
SHAPEFILE_ENCODING = "UTF-8"

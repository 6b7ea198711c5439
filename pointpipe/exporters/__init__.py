from pointpipe.exporters.geo_exporter import GeoFormat, exporter_for, read, write

__all__ = ["GeoFormat", "exporter_for", "read", "write"]

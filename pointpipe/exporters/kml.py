from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from pointpipe.constructs.point_set import PointSet
from pointpipe.errors import IOFailure, UnsupportedAttribute
from pointpipe.exporters.exporter_interface import ExporterInterface, staged_write
from pointpipe.utils.crs import LATLON_CRS
from pointpipe.utils.keys import KML_NAMESPACE, KML_SCHEMA_ID

log = logging.getLogger(__name__)

ET.register_namespace("", KML_NAMESPACE)

# characters XML 1.0 cannot carry, even escaped
ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _q(tag: str) -> str:
    return f"{{{KML_NAMESPACE}}}{tag}"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _iter_local(element: ET.Element, name: str) -> Iterator[ET.Element]:
    """Iterate descendants by tag name, with or without the KML namespace."""
    for e in element.iter():
        if isinstance(e.tag, str) and _local_name(e.tag) == name:
            yield e


def _first(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next(_iter_local(element, name), None)


def field_type(values: List[Any]) -> str:
    """
    Pick the KML SimpleField type able to hold every non-missing value.

    Returns:
        One of "bool", "int", "double" or "string"
    """
    present = [v for v in values if v is not None]
    if not present:
        return "string"
    if all(isinstance(v, bool) for v in present):
        return "bool"
    if any(isinstance(v, bool) for v in present):
        return "string"
    if all(isinstance(v, int) for v in present):
        return "int"
    if all(isinstance(v, (int, float)) for v in present):
        return "double"
    return "string"


def check_xml_text(field_name: str, text: str) -> None:
    """
    Raise UnsupportedAttribute if text holds characters an XML document cannot store.
    """
    match = ILLEGAL_XML_CHARS.search(text)
    if match:
        raise UnsupportedAttribute(
            f"KML attribute {field_name!r} holds the character {match.group()!r} "
            f"which XML cannot store: {text!r}"
        )


def format_value(value: Any, kind: str) -> str:
    if kind == "bool":
        return "1" if value else "0"
    if kind == "double":
        return repr(float(value))
    return str(value)


def parse_value(text: Optional[str], kind: str) -> Any:
    text = text or ""
    if kind == "bool":
        return text.strip().lower() in ("1", "true")
    if kind in ("int", "uint", "short", "ushort"):
        return int(text)
    if kind in ("float", "double"):
        return float(text)
    return text


class KMLExporter(ExporterInterface):
    """
    Writes and reads point sets as KML 2.2 documents.

    KML coordinates are always WGS84 longitude/latitude, so a point set in any other
    reference system is reprojected to EPSG:4326 before it is written, and `read`
    always returns a point set in EPSG:4326.

    Attributes are declared once in a <Schema> with typed <SimpleField>s and stored
    per placemark as <SchemaData>. The declared types (int, double, bool, string) are
    restored on read. Missing (None) values are left out of the placemark and read
    back as None. Untyped <Data> elements found in other KML files are read as strings.

    A column mixing kinds (numbers with strings, or bools with numbers) is declared
    as a string field, so [1, "a", 2.5] reads back as ["1", "a", "2.5"]. Strings
    holding control characters XML cannot store raise UnsupportedAttribute.

    Examples:
        >>> exporter = KMLExporter()
        >>> exporter.write(plots.to_crs(26911), 'plots.kml')  # stored as EPSG:4326
        >>> exporter.read('plots.kml').crs
        4326
    """

    @property
    def suffix(self) -> str:
        return ".kml"

    def write(self, pointset: PointSet, path: Union[str, Path]) -> None:
        path = self._check_writable(pointset, path)

        if pointset.crs != LATLON_CRS:
            log.info(
                f"reprojecting {len(pointset)} points from EPSG:{pointset.crs} "
                f"to EPSG:{LATLON_CRS} for KML export"
            )
            pointset = pointset.to_crs(LATLON_CRS)

        tree = self.to_element_tree(pointset, name=path.stem)

        with staged_write(path) as staging:
            tree.write(staging / path.name, encoding="utf-8", xml_declaration=True)

    def to_element_tree(self, pointset: PointSet, name: str) -> ET.ElementTree:
        """
        Build the KML document for a point set already in EPSG:4326.

        Args:
            pointset: The points to encode, in EPSG:4326
            name: The document name

        Returns:
            An ElementTree rooted at the <kml> element

        Raises:
            UnsupportedAttribute: If a name or string value holds characters XML
                cannot store
        """
        attributes = pointset.attributes
        kinds: Dict[str, str] = {n: field_type(v) for n, v in attributes.items()}
        for field_name, values in attributes.items():
            check_xml_text(field_name, field_name)
            if kinds[field_name] == "string":
                for value in values:
                    if value is not None:
                        check_xml_text(field_name, str(value))

        root = ET.Element(_q("kml"))
        document = ET.SubElement(root, _q("Document"))
        ET.SubElement(document, _q("name")).text = name

        if kinds:
            schema = ET.SubElement(
                document, _q("Schema"), name=KML_SCHEMA_ID, id=KML_SCHEMA_ID
            )
            for field_name, kind in kinds.items():
                ET.SubElement(schema, _q("SimpleField"), type=kind, name=field_name)

        for point, row in zip(pointset.points, pointset.rows()):
            placemark = ET.SubElement(document, _q("Placemark"))
            if kinds:
                extended = ET.SubElement(placemark, _q("ExtendedData"))
                schema_data = ET.SubElement(
                    extended, _q("SchemaData"), schemaUrl=f"#{KML_SCHEMA_ID}"
                )
                for field_name, kind in kinds.items():
                    value = row[field_name]
                    if value is None:
                        continue
                    ET.SubElement(
                        schema_data, _q("SimpleData"), name=field_name
                    ).text = format_value(value, kind)
            geometry = ET.SubElement(placemark, _q("Point"))
            ET.SubElement(geometry, _q("coordinates")).text = (
                f"{point.x!r},{point.y!r}"
            )

        ET.indent(root)
        return ET.ElementTree(root)

    def read(self, path: Union[str, Path]) -> PointSet:
        path = self._check_readable(path)

        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as e:
            raise IOFailure(f"could not parse KML file {path}: {e}") from e

        kinds = {
            f.get("name"): f.get("type", "string")
            for f in _iter_local(root, "SimpleField")
        }
        names = list(kinds)

        xs: List[float] = []
        ys: List[float] = []
        rows: List[Dict[str, Any]] = []
        for placemark in _iter_local(root, "Placemark"):
            geometry = _first(placemark, "Point")
            coordinates = _first(geometry, "coordinates") if geometry is not None else None
            if coordinates is None or not (coordinates.text or "").strip():
                log.warning(f"skipping a placemark without point geometry in {path}")
                continue

            x, y = coordinates.text.split()[0].split(",")[:2]
            xs.append(float(x))
            ys.append(float(y))

            row = {}
            for data in _iter_local(placemark, "SimpleData"):
                field_name = data.get("name")
                row[field_name] = parse_value(data.text, kinds.get(field_name, "string"))
            for data in _iter_local(placemark, "Data"):
                value = _first(data, "value")
                row[data.get("name")] = value.text if value is not None else None
            for field_name in row:
                if field_name not in names:
                    names.append(field_name)
            rows.append(row)

        log.debug(f"read {len(xs)} points from {path}")

        pointset = PointSet.from_xy(xs, ys, LATLON_CRS)
        for field_name in names:
            pointset = pointset.with_attribute(
                field_name, [row.get(field_name) for row in rows]
            )

        return pointset

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABCMeta, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from pointpipe.constructs.point_set import PointSet
from pointpipe.errors import EmptyDataset, IOFailure

log = logging.getLogger(__name__)


@contextmanager
def staged_write(path: Path) -> Iterator[Path]:
    """
    Stage a write in a temporary directory next to the destination.

    The caller writes its file(s) into the yielded directory, named as they should
    appear beside `path`. Only when the block finishes without error are the staged
    files moved into place with os.replace, so a failed write never leaves a partial
    file at the destination. The staging directory is removed on every exit path.

    Raises:
        IOFailure: If the staging directory cannot be created or the files cannot be moved
    """
    parent = path.parent
    try:
        with tempfile.TemporaryDirectory(dir=parent, prefix=".pointpipe-") as tmp:
            staging = Path(tmp)
            yield staging
            for staged in sorted(staging.iterdir()):
                os.replace(staged, parent / staged.name)
                log.debug(f"wrote {parent / staged.name}")
    except IOFailure:
        raise
    except OSError as e:
        raise IOFailure(f"could not write {path}: {e}") from e


class ExporterInterface(metaclass=ABCMeta):
    """
    Abstract base class for writing a PointSet to a geospatial file and reading it back.

    Every exporter handles one file format. Implementations must encode every point's
    coordinates, all attributes as named fields and, where the format allows, the
    reference system, such that `read(path)` after `write(pointset, path)` yields an
    equal PointSet up to the format's documented coercions.

    Examples:
        >>> from pointpipe.exporters.shapefile import ShapefileExporter
        >>> from pointpipe.exporters.kml import KMLExporter
        >>>
        >>> # All exporters follow the same interface
        >>> exporter = ShapefileExporter()
        >>> exporter.write(plots, 'plots.shp')
        >>> same_plots = exporter.read('plots.shp')
    """

    @property
    @abstractmethod
    def suffix(self) -> str:
        """
        The file suffix this format is written with, e.g. '.shp'
        """

    @abstractmethod
    def write(self, pointset: PointSet, path: Union[str, Path]) -> None:
        """
        Write a point set to a file.

        Args:
            pointset: The points and attributes to write
            path: The destination file path, ending in this exporter's suffix

        Raises:
            EmptyDataset: If the point set has no points
            IOFailure: If the destination cannot be written
        """

    @abstractmethod
    def read(self, path: Union[str, Path]) -> PointSet:
        """
        Read a point set from a file written in this format.

        Args:
            path: The file to read

        Returns:
            A PointSet with points in stored order, the stored attributes and the
            recorded reference system

        Raises:
            IOFailure: If the file is missing or cannot be parsed
        """

    def _check_writable(self, pointset: PointSet, path: Union[str, Path]) -> Path:
        path = Path(path)
        if path.suffix.lower() != self.suffix:
            raise ValueError(
                f"file {path.name} does not have the {self.suffix} suffix "
                f"required by {type(self).__name__}"
            )
        if len(pointset) == 0:
            raise EmptyDataset(f"refusing to write an empty point set to {path}")
        return path

    def _check_readable(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        if not path.is_file():
            raise IOFailure(f"no such file: {path}")
        return path

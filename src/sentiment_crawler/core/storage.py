"""Persists the serialized triples of a run to the output file."""

from pathlib import Path
from typing import Optional, Union

from ..foundation.errors import StorageError
from ..foundation.logging import get_logger

DEFAULT_OUTPUT_FILENAME = "sentiment.txt"

PathLike = Union[str, Path]


class OutputSink:
    """Writes the output buffer to ``<output_dir>/<filename>``."""

    def __init__(self, filename: str = DEFAULT_OUTPUT_FILENAME, create_dirs: bool = False):
        self.filename = filename
        self.create_dirs = create_dirs
        self.logger = get_logger(__name__)

    def resolve_path(self, output_dir: Optional[PathLike] = None) -> Path:
        """Where the output file goes; the working directory when ``output_dir`` is absent."""
        directory = Path(output_dir).expanduser() if output_dir else Path.cwd()
        return directory / self.filename

    def write(self, text: str, output_dir: Optional[PathLike] = None) -> Path:
        """Write ``text`` as UTF-8, replacing any existing file.

        Args:
            text: Serialized triples
            output_dir: Target directory (defaults to the working directory)

        Returns:
            Path of the written file

        Raises:
            StorageError: if the directory is missing (and may not be created) or the write fails
        """
        path = self.resolve_path(output_dir)
        directory = path.parent

        if not directory.is_dir():
            if directory.exists():
                raise StorageError(f"Output path is not a directory: {directory}", path=str(path))
            if not self.create_dirs:
                raise StorageError(f"Output directory does not exist: {directory}", path=str(path))
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(f"Cannot create output directory {directory}: {e}", path=str(path)) from e
            self.logger.info(f"Created output directory {directory}")

        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}", path=str(path)) from e

        self.logger.info(f"Wrote {len(text)} characters to {path}")
        return path

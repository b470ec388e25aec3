"""Atomic output writing for rendered JSON text."""

import os
import tempfile
from pathlib import Path
from typing import Union

from sheet_to_json.models.errors import OutputWriteError
from sheet_to_json.utils.encodings import resolve_encoding
from sheet_to_json.utils.logger import get_processing_logger
from sheet_to_json.utils.logging_decorators import log_operation, operation_context


class JsonFileWriter:
    """Writes text to a file so that readers never observe a partial file.

    The text is written to a temporary file in the destination directory,
    flushed to disk and moved over the destination with ``os.replace``.
    The temporary file is removed on every failure path.
    """

    TEMP_PREFIX = ".sheet_to_json-"
    TEMP_SUFFIX = ".tmp"

    def __init__(self):
        self.logger = get_processing_logger(__name__)

    @log_operation("write_json_file", log_args=False)
    def write(self, text: str, output_path: Union[str, Path], encoding: str) -> Path:
        """Encode and atomically write text to output_path.

        Args:
            text: Rendered JSON text
            output_path: Destination file; parent directories are created
            encoding: Text encoding name, legacy aliases accepted

        Returns:
            The destination path

        Raises:
            InvalidConfigurationError: If the encoding is unknown
            OutputWriteError: If the text cannot be encoded or written
        """
        output_path = Path(output_path)
        codec = resolve_encoding(encoding)

        with operation_context(
            "json_file_write",
            self.logger,
            output_path=str(output_path),
            encoding=codec,
        ) as metrics:
            try:
                payload = text.encode(codec)
            except UnicodeEncodeError as e:
                raise OutputWriteError(
                    f"Cannot encode output with {encoding}: {e}", output_path
                ) from e

            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise OutputWriteError(f"Cannot create output directory: {e}", output_path) from e

            self._replace_atomically(payload, output_path)

            if metrics is not None:
                metrics.add_metadata("bytes_written", len(payload))

            self.logger.info(
                f"Wrote {len(payload):,} bytes to {output_path}",
                extra={"structured": {
                    "operation": "json_file_written",
                    "output_path": str(output_path),
                    "bytes_written": len(payload),
                    "encoding": codec,
                }},
            )
            return output_path

    def _replace_atomically(self, payload: bytes, output_path: Path) -> None:
        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=self.TEMP_PREFIX,
                suffix=self.TEMP_SUFFIX,
                dir=str(output_path.parent),
            )
        except OSError as e:
            raise OutputWriteError(f"Cannot create temporary file: {e}", output_path) from e

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, output_path)
        except BaseException as e:
            _remove_quietly(temp_name)
            if isinstance(e, OSError):
                raise OutputWriteError(f"Cannot write output file: {e}", output_path) from e
            raise


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass

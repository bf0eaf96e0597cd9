"""Receives tiles while they are downloaded and feeds them to an encoder."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path

from tilestitch.canvas import Canvas, ImageWriter
from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Encoder, Tile
from tilestitch.errors import ZoomError
from tilestitch.iiif_encoder import IiifEncoder
from tilestitch.png_encoder import PngEncoder

logger = logging.getLogger(__name__)

_CLOSE = object()
_QUEUE_SIZE = 1024


def encoder_for_name(destination: str | Path, size: Vec2d, compression: int) -> Encoder:
    """Choose an encoder from the extension of the destination."""
    destination = Path(destination)
    extension = destination.suffix[1:]
    quality = max(0, 100 - compression)
    if extension == "png":
        logger.debug("Using the streaming png encoder")
        return PngEncoder(destination, size, compression)
    if extension == "iiif":
        logger.debug("Using the iiif tiling encoder")
        return IiifEncoder(destination, size, quality)
    if extension in ("jpeg", "jpg"):
        logger.debug("Using the jpeg encoder with a quality of %d", quality)
        return Canvas(destination, size, ImageWriter(jpeg_quality=quality))
    logger.debug("Using the generic canvas implementation %s", destination)
    return Canvas(destination, size, ImageWriter())


class TileBuffer:
    """Stores tiles until the image size is known, then encodes them in a worker thread."""

    def __init__(self, destination: str | Path, compression: int) -> None:
        self.destination = Path(destination)
        self.compression = compression
        self._buffer: list[Tile] = []
        self._queue: queue.Queue | None = None
        self._worker: threading.Thread | None = None
        self._errors: list[Exception] = []
        self._finalized = False

    def set_size(self, size: Vec2d) -> None:
        """Create the encoder for an image of the given size; allowed only once."""
        if self._worker is not None:
            raise RuntimeError("The size of the image can be set only once")
        logger.debug("Creating a tile writer for an image of size %s", size)
        encoder = encoder_for_name(self.destination, size, self.compression)
        buffered, self._buffer = self._buffer, []
        for tile in buffered:
            encoder.add_tile(tile)
        self._queue = queue.Queue(maxsize=_QUEUE_SIZE)
        self._worker = threading.Thread(target=self._run, args=(encoder,), daemon=True)
        self._worker.start()

    def _run(self, encoder: Encoder) -> None:
        assert self._queue is not None
        while True:
            item = self._queue.get()
            if item is _CLOSE:
                break
            try:
                encoder.add_tile(item)
            except Exception as err:  # noqa: BLE001 - reported at finalize
                logger.warning("Error when adding tile: %s", err)
                self._errors.append(err)
        logger.debug("Finalizing the encoder")
        try:
            encoder.finalize()
        except Exception as err:  # noqa: BLE001 - reported at finalize
            logger.warning("Error when finalizing image: %s", err)
            self._errors.append(err)

    def add_tile(self, tile: Tile) -> None:
        """Add a tile to the image."""
        if self._finalized:
            raise RuntimeError("The tile writer has already been finalized")
        if self._queue is None:
            self._buffer.append(tile)
        else:
            self._queue.put(tile)

    def finalize(self) -> None:
        """Encode the remaining tiles and write the image; raise if anything failed."""
        if self._finalized:
            raise RuntimeError("The tile writer has already been finalized")
        if self._worker is None:
            size = Vec2d(0, 0)
            for tile in self._buffer:
                size = size.max(tile.position + tile.size())
            self.set_size(size)
        assert self._queue is not None and self._worker is not None
        self._finalized = True
        self._queue.put(_CLOSE)
        logger.debug("Waiting for the image encoding task to finish")
        self._worker.join()
        if self._errors:
            err = self._errors[-1]
            raise ZoomError(f"Input/Output error: {err}") from err
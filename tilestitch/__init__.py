"""Work out the tiles of zoomable images and stitch them into single pictures."""

__version__ = "0.1.0"
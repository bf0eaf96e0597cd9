"""Command line options and the choices they drive."""

from __future__ import annotations

import argparse
import re
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tilestitch.auto import all_dezoomers
from tilestitch.dezoomer import Dezoomer, Vec2d
from tilestitch.errors import NoSuchDezoomer, ZoomError

_DURATION_RE = re.compile(r"(\d+)\s*(min|s|ms|ns)")
_DURATION_ERROR = (
    "Invalid duration. "
    "A duration is a number followed by a unit, such as '10ms' or '5s'"
)
_UNIT_SECONDS = {"min": 60.0, "s": 1.0, "ms": 1e-3, "ns": 1e-9}
_U64_MAX = 2**64 - 1
_U32_MAX = 2**32 - 1


def parse_header(text: str) -> tuple[str, str]:
    """Parse a 'Name: Value' header."""
    parts = [part.strip() for part in text.split(":", 1)]
    if len(parts) != 2:
        raise ValueError("Invalid header format. Expected 'Name: Value'")
    return parts[0], parts[1]


def parse_duration(text: str) -> float:
    """Parse a duration such as '10ms', '5 s' or '2min' into seconds."""
    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise ValueError(_DURATION_ERROR)
    value = int(match.group(1))
    if value > _U64_MAX:
        raise ValueError(_DURATION_ERROR)
    unit = match.group(2)
    if unit == "min":
        return float(60 * value)
    if unit == "s":
        return float(value)
    return value * _UNIT_SECONDS[unit]


@dataclass
class Arguments:
    """The options that control how an image is downloaded and saved."""

    input_uri: str | None = None
    outfile: Path | None = None
    dezoomer: str = "auto"
    largest: bool = False
    max_width: int | None = None
    max_height: int | None = None
    parallelism: int = 16
    retries: int = 1
    retry_delay: float = 2.0
    compression: int = 20
    headers: list[tuple[str, str]] = field(default_factory=list)
    max_idle_per_host: int = 32
    accept_invalid_certs: bool = False
    timeout: float = 30.0
    connect_timeout: float = 6.0
    logging: str = "warn"
    tile_storage_folder: Path | None = None

    def choose_input_uri(self) -> str:
        """Return the input URI, asking for it on standard input if not given."""
        if self.input_uri is not None:
            return self.input_uri
        print("Enter an URL or a path to a tiles.yaml file: ")
        line = sys.stdin.readline()
        if not line:
            raise ZoomError("Input/Output error: no input available")
        return line.strip()

    def find_dezoomer(self) -> Dezoomer:
        """Return the dezoomer with the requested name."""
        for dezoomer in all_dezoomers(True):
            if dezoomer.name == self.dezoomer:
                return dezoomer
        raise NoSuchDezoomer(self.dezoomer)

    def best_size(self, sizes: Iterable[Vec2d]) -> Vec2d | None:
        """Pick the zoom level size the options ask for, if they ask for one."""
        if self.largest:
            return _largest(sizes)
        if self.max_width is not None or self.max_height is not None:
            return _largest(
                s
                for s in sizes
                if (self.max_width is None or s.x <= self.max_width)
                and (self.max_height is None or s.y <= self.max_height)
            )
        return None


def _largest(sizes: Iterable[Vec2d]) -> Vec2d | None:
    # On equal areas, the last one wins.
    best: Vec2d | None = None
    for size in sizes:
        if best is None or size.area() >= best.area():
            best = size
    return best


def _argument_type(func: Callable[[str], Any], name: str) -> Callable[[str], Any]:
    def convert(text: str) -> Any:
        try:
            return func(text)
        except ValueError as err:
            raise argparse.ArgumentTypeError(str(err)) from None

    convert.__name__ = name
    return convert


def _bounded_int(limit: int) -> Callable[[str], int]:
    def convert(text: str) -> int:
        value = int(text)
        if not 0 <= value <= limit:
            raise ValueError(f"number out of range: {text}")
        return value

    return convert


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilestitch",
        description="Download and assemble the tiles of a zoomable image.",
        add_help=False,
    )
    u32 = _argument_type(_bounded_int(_U32_MAX), "u32")
    u8 = _argument_type(_bounded_int(255), "u8")
    count = _argument_type(_bounded_int(_U64_MAX), "count")
    duration = _argument_type(parse_duration, "duration")
    header = _argument_type(parse_header, "header")

    parser.add_argument("--help", action="help", help="Print help information")
    parser.add_argument("input_uri", nargs="?", help="Input URL or local file name")
    parser.add_argument(
        "outfile", nargs="?", type=Path,
        help="File to which the resulting image should be saved",
    )
    parser.add_argument("-d", "--dezoomer", default="auto", help="Name of the dezoomer to use")
    parser.add_argument(
        "-l", "--largest", action="store_true",
        help="If several zoom levels are available, then select the largest one",
    )
    parser.add_argument(
        "-w", "--max-width", type=u32,
        help="Select the largest zoom level whose width is at most this value",
    )
    parser.add_argument(
        "-h", "--max-height", type=u32,
        help="Select the largest zoom level whose height is at most this value",
    )
    parser.add_argument(
        "-n", "--parallelism", type=count, default=16,
        help="At most this number of tiles will be downloaded at the same time",
    )
    parser.add_argument(
        "-r", "--retries", type=count, default=1,
        help="Number of new attempts to make when a tile load fails before giving up",
    )
    parser.add_argument(
        "--retry-delay", type=duration, default=2.0,
        help="Time to wait before the first retry; each further retry waits twice as long",
    )
    parser.add_argument(
        "--compression", type=u8, default=20,
        help="A number between 0 and 100 expressing how much to compress the output image",
    )
    parser.add_argument(
        "-H", "--header", dest="headers", type=header, action="append", default=None,
        help="Sets an HTTP header to use on requests, as 'Name: Value'. Can be repeated",
    )
    parser.add_argument(
        "--max-idle-per-host", type=count, default=32,
        help="Maximum number of idle connections per host allowed at the same time",
    )
    parser.add_argument(
        "--accept-invalid-certs", action="store_true",
        help="Whether to accept connecting to insecure HTTPS servers",
    )
    parser.add_argument(
        "--timeout", type=duration, default=30.0,
        help="Maximum time for a request before it is considered failed",
    )
    parser.add_argument(
        "--connect-timeout", type=duration, default=6.0,
        help="Time after which to give up when trying to connect to a server",
    )
    parser.add_argument(
        "--logging", default="warn",
        help='Level of logging verbosity. Set it to "debug" to get all logging messages',
    )
    parser.add_argument(
        "-c", "--tile-cache", dest="tile_storage_folder", type=Path,
        help="A place to store the image tiles after they are downloaded and decrypted",
    )
    return parser


def parse_arguments(argv: list[str] | None = None) -> Arguments:
    """Parse command line arguments (without the program name)."""
    namespace = _build_parser().parse_args(argv)
    values = vars(namespace)
    values["headers"] = values["headers"] or []
    return Arguments(**values)
"""Automatic selection of the dezoomer that understands a given input."""

from __future__ import annotations

import logging

from tilestitch.custom_yaml import CustomDezoomer
from tilestitch.dezoomer import Dezoomer, DezoomerInput, TileProvider
from tilestitch.dzi import DziDezoomer
from tilestitch.errors import DezoomerError, NeedsData
from tilestitch.generic import GenericDezoomer

logger = logging.getLogger(__name__)

_HINT = (
    "This tool expects the URL of the meta-information file of a zoomable image. "
    "A browser extension that records the requests made by the image viewer "
    "can help you find it.\n"
    "If this doesn't help, then your image may be in a format that is not yet supported."
)


def all_dezoomers(include_generic: bool) -> list[Dezoomer]:
    """Return a fresh instance of every dezoomer, plus the automatic one if asked."""
    dezoomers: list[Dezoomer] = [
        CustomDezoomer(),
        DziDezoomer(),
        GenericDezoomer(),
    ]
    if include_generic:
        dezoomers.append(AutoDezoomer())
    return dezoomers


class AutoDezoomerError(DezoomerError):
    """None of the dezoomers could handle the input."""

    def __init__(self, errors: list[tuple[str, DezoomerError]]) -> None:
        self.errors = list(errors)
        super().__init__(self._describe())

    def _describe(self) -> str:
        if not self.errors:
            return "No dezoomer!\n"
        lines = [
            "Tried all of the dezoomers, none succeeded. "
            "They returned the following errors:\n\n"
        ]
        lines.extend(f" - {name}: {err}\n" for name, err in self.errors)
        lines.append(f"\n{_HINT}\n")
        return "".join(lines)


class AutoDezoomer(Dezoomer):
    """Tries every dezoomer and collects the zoom levels of those that succeed."""

    name = "auto"

    def __init__(self) -> None:
        self._dezoomers: list[Dezoomer] = all_dezoomers(False)
        self._errors: list[tuple[str, DezoomerError]] = []
        self._successes: list[TileProvider] = []
        self._needs_uris: list[str] = []

    def _try(self, dezoomer: Dezoomer, data: DezoomerInput) -> bool:
        """Run one dezoomer; return whether it has to be called again."""
        try:
            levels = dezoomer.zoom_levels(data)
        except NeedsData as need:
            logger.info("dezoomer '%s' requested to load %s", dezoomer.name, need.uri)
            if need.uri not in self._needs_uris:
                self._needs_uris.append(need.uri)
            return True
        except DezoomerError as err:
            logger.debug("%s cannot process this image: %s", dezoomer.name, err)
            self._errors.append((dezoomer.name, err))
            return False
        logger.info("dezoomer '%s' found %d zoom levels", dezoomer.name, len(levels))
        self._successes.extend(levels)
        return False

    def zoom_levels(self, data: DezoomerInput) -> list[TileProvider]:
        self._dezoomers = [d for d in self._dezoomers if self._try(d, data)]
        if self._needs_uris:
            raise NeedsData(self._needs_uris.pop())
        if not self._successes:
            logger.info("No dezoomer can dezoom %r", data.uri)
            errors, self._errors = self._errors, []
            raise AutoDezoomerError(errors)
        successes, self._successes = self._successes, []
        return successes
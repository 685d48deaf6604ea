from __future__ import annotations

import io
import logging
import os
import posixpath
import zipfile
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Union

from stackview.engine.errors import ArchiveError

LOGGER = logging.getLogger(__name__)

ArchiveSource = Union[str, os.PathLike, bytes, BinaryIO]


@dataclass(frozen=True)
class Screen:
    number: int
    json_text: str
    screenshot: bytes = b""
    screen_name: str = ""


@dataclass
class ArchiveResult:
    screens: List[Screen] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _open_zip(source: ArchiveSource) -> zipfile.ZipFile:
    if isinstance(source, (bytes, bytearray)):
        return zipfile.ZipFile(io.BytesIO(bytes(source)))
    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        if not str(path).lower().endswith(".zip"):
            raise ArchiveError("Please select a valid ZIP file", details={"path": str(path)})
        return zipfile.ZipFile(path)
    return zipfile.ZipFile(source)


def read_screen_archive(source: ArchiveSource) -> ArchiveResult:
    """Pair ``<n>.json`` with ``<n>.png`` entries of a ZIP archive.

    Pairs are matched on the path without extension; the stem must be an
    integer. Unpaired or non-numeric entries are dropped and reported in
    ``warnings``. Screens come back sorted by number.
    """
    try:
        zf = _open_zip(source)
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveError("Failed to process ZIP file", details={"error": str(e)}) from e

    result = ArchiveResult()
    with zf:
        json_names: Dict[str, str] = {}
        png_names: Dict[str, str] = {}
        for info in zf.infolist():
            if info.is_dir():
                continue
            name = info.filename
            lower = name.lower()
            if lower.endswith(".json"):
                json_names[name[: -len(".json")]] = name
            elif lower.endswith(".png"):
                png_names[name[: -len(".png")]] = name

        for stem, json_name in json_names.items():
            png_name = png_names.get(stem)
            if png_name is None:
                result.warnings.append(f"No screenshot for {json_name}")
                continue
            base = posixpath.basename(stem)
            try:
                number = int(base)
            except ValueError:
                result.warnings.append(f"Skipping non-numeric entry {json_name}")
                continue
            try:
                text = zf.read(json_name).decode("utf-8")
                png = zf.read(png_name)
            except (KeyError, OSError, UnicodeDecodeError, zipfile.BadZipFile) as e:
                result.warnings.append(f"Unreadable pair {json_name}: {e}")
                continue
            result.screens.append(Screen(number=number, json_text=text, screenshot=png, screen_name=f"screen_{number}"))

        for stem, png_name in png_names.items():
            if stem not in json_names:
                result.warnings.append(f"No element list for {png_name}")

    result.screens.sort(key=lambda s: s.number)
    for msg in result.warnings:
        LOGGER.info("archive: %s", msg)
    LOGGER.info("Archive paired %d screen(s)", len(result.screens))
    return result

"""Compressed text file handles (gzip/bzip2/xz/lzma)."""

import bz2
import gzip
import io
import lzma
import pathlib
import typing as tp

import beartype

import debarch.errors

EXTENSIONS: dict[str, str] = {
    "gzip": ".gz",
    "bzip2": ".bz2",
    "xz": ".xz",
    "lzma": ".lzma",
}
"""Map from compression name to filename extension, in lookup order."""


@beartype.beartype
def get_compression_from_filename(fpath: pathlib.Path) -> str | None:
    """Return the compression implied by the filename extension, if any."""
    for compression, ext in EXTENSIONS.items():
        if fpath.name.endswith(ext):
            return compression
    return None


@beartype.beartype
def find_readable_fpath(fpath: pathlib.Path) -> pathlib.Path:
    """Return fpath, or its first existing compressed variant."""
    if fpath.exists():
        return fpath

    for ext in EXTENSIONS.values():
        candidate = fpath.with_name(fpath.name + ext)
        if candidate.exists():
            return candidate

    return fpath


@beartype.beartype
def open_file(
    fpath: pathlib.Path, mode: tp.Literal["r", "w"], compression: str | None
) -> io.TextIOBase:
    """Open fpath as UTF-8 text, compressing or decompressing on the fly."""
    if compression is not None and compression not in EXTENSIONS:
        names = ", ".join(EXTENSIONS)
        raise debarch.errors.DebarchError(
            message=f"Unsupported compression '{compression}' for {fpath}",
            hint=f"Known compressions: {names}.",
        )

    text_mode = f"{mode}t"
    match compression:
        case "gzip":
            fd = gzip.open(fpath, text_mode, encoding="utf-8")
        case "bzip2":
            fd = bz2.open(fpath, text_mode, encoding="utf-8")
        case "xz":
            fd = lzma.open(fpath, text_mode, format=lzma.FORMAT_XZ, encoding="utf-8")
        case "lzma":
            fd = lzma.open(
                fpath, text_mode, format=lzma.FORMAT_ALONE, encoding="utf-8"
            )
        case _:
            fd = fpath.open(mode, encoding="utf-8")
    return tp.cast(io.TextIOBase, fd)

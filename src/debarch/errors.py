"""Errors raised for bad architecture names, tables, platforms and files.

Each error carries a message saying what failed on which input and, where
there is one, a hint the user can act on (a command to run or an
environment variable to set). The CLI prints both and exits 1.
"""

import dataclasses
import pathlib

import beartype

STDIO_FPATH = pathlib.Path("-")
"""Path standing for standard input or output."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class DebarchError(Exception):
    """Base error with structured context for user-facing messages."""

    message: str
    """What went wrong."""

    hint: str | None = None
    """What the user can do about it."""

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class ArchError(DebarchError):
    """Unknown or malformed architecture name."""

    arch: str | None = dataclasses.field(default=None, kw_only=True)
    """Offending architecture or GNU triplet, if any."""

    @staticmethod
    def make(arch: str) -> "ArchError":
        """Create an ArchError for an architecture missing from the tables."""
        return ArchError(
            message=f"Unknown Debian architecture '{arch}'",
            hint="Run 'debarch list' to see the known architectures.",
            arch=arch,
        )


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class TableError(DebarchError):
    """Architecture data table is missing or invalid."""

    source: str = dataclasses.field(kw_only=True)
    """Path or description of the table."""

    @staticmethod
    def make(message: str, source: str) -> "TableError":
        """Create a TableError with default hint."""
        return TableError(
            message=message,
            hint="Check the file, or point DPKG_DATADIR at a directory "
            "holding cputable, ostable, triplettable and abitable.",
            source=source,
        )


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class PlatformError(DebarchError):
    """Build or host architecture cannot be determined."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class StorableError(DebarchError):
    """Reading or writing a stored object failed."""

    fpath: pathlib.Path = dataclasses.field(kw_only=True)
    """Path that was being read or written."""

    @staticmethod
    def make_read(fpath: pathlib.Path, err: Exception) -> "StorableError":
        """Create a StorableError for a failed read."""
        if fpath == STDIO_FPATH:
            return StorableError(
                message=f"Cannot read standard input: {err}",
                hint="Check the data piped into the command.",
                fpath=fpath,
            )
        return StorableError(
            message=f"Cannot read {fpath}: {err}",
            hint="Check that the file exists, is readable and is not corrupted.",
            fpath=fpath,
        )

    @staticmethod
    def make_write(fpath: pathlib.Path, err: Exception) -> "StorableError":
        """Create a StorableError for a failed write."""
        if fpath == STDIO_FPATH:
            return StorableError(
                message=f"Cannot write standard output: {err}",
                hint="Check that whatever reads the output is still running.",
                fpath=fpath,
            )
        return StorableError(
            message=f"Cannot write {fpath}: {err}",
            hint=f"Check that {fpath.parent} exists and is writable.",
            fpath=fpath,
        )

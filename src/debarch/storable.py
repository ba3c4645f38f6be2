"""Load/save mixin for objects that can parse and output themselves.

A class mixing in `Storable` provides two methods:

* `parse(fd, desc, **kwargs)` initializes the object from the text stream
  `fd`. `desc` describes the stream for error messages.
* `output(fd=None, **kwargs)` returns the string representation of the object,
  and also writes it to `fd` when one is given.

In return it gets `load()`, `save()` and `str()`. A path of "-" means standard
input or output (never compressed). Any other path is compressed or
decompressed on the fly based on its extension.
"""

import lzma
import os
import pathlib
import sys
import tempfile
import typing as tp

import beartype

import debarch.compression
import debarch.errors

STDIN_DESC = "<standard input>"

_READ_ERRORS = (OSError, EOFError, UnicodeDecodeError, lzma.LZMAError)


class Storable:
    """Mixin providing load(), save() and str() on top of parse() and output()."""

    @beartype.beartype
    def load(self, fpath: str | pathlib.Path, **kwargs: tp.Any) -> tp.Any:
        """Initialize the object from fpath and return what parse() returns.

        If fpath does not exist, its compressed variants (fpath.gz, ...) are tried.
        """
        parse = getattr(self, "parse", None)
        if not callable(parse):
            raise TypeError(
                f"{type(self).__name__} cannot be loaded, it lacks the parse method"
            )

        if str(fpath) == "-":
            try:
                return parse(sys.stdin, STDIN_DESC, **kwargs)
            except _READ_ERRORS as err:
                raise debarch.errors.StorableError.make_read(
                    debarch.errors.STDIO_FPATH, err
                ) from None

        fpath = debarch.compression.find_readable_fpath(pathlib.Path(fpath))
        compression = debarch.compression.get_compression_from_filename(fpath)
        try:
            with debarch.compression.open_file(fpath, "r", compression) as fd:
                return parse(fd, str(fpath), **kwargs)
        except _READ_ERRORS as err:
            raise debarch.errors.StorableError.make_read(fpath, err) from None

    @beartype.beartype
    def save(self, fpath: str | pathlib.Path, **kwargs: tp.Any) -> None:
        """Store the object in fpath, atomically."""
        output = getattr(self, "output", None)
        if not callable(output):
            raise TypeError(
                f"{type(self).__name__} cannot be saved, it lacks the output method"
            )

        if str(fpath) == "-":
            try:
                output(sys.stdout, **kwargs)
                sys.stdout.flush()
            except OSError as err:
                raise debarch.errors.StorableError.make_write(
                    debarch.errors.STDIO_FPATH, err
                ) from None
            return

        fpath = pathlib.Path(fpath)
        compression = debarch.compression.get_compression_from_filename(fpath)
        try:
            with tempfile.NamedTemporaryFile(
                dir=fpath.parent, prefix=f".{fpath.name}.", suffix=".tmp", delete=False
            ) as tmp_fd:
                tmp_fpath = pathlib.Path(tmp_fd.name)
        except OSError as err:
            raise debarch.errors.StorableError.make_write(fpath, err) from None

        # No temporary file survives a failed write.
        try:
            with debarch.compression.open_file(tmp_fpath, "w", compression) as fd:
                output(fd, **kwargs)
            os.replace(tmp_fpath, fpath)
        except OSError as err:
            tmp_fpath.unlink(missing_ok=True)
            raise debarch.errors.StorableError.make_write(fpath, err) from None
        except BaseException:
            tmp_fpath.unlink(missing_ok=True)
            raise

    def __str__(self) -> str:
        output = getattr(self, "output", None)
        if not callable(output):
            name = type(self).__name__
            raise TypeError(
                f"{name} cannot be stringified, it lacks the output method"
            )
        return output()

"""Architecture data tables (cputable, ostable, triplettable, abitable)."""

import dataclasses
import functools
import io
import logging
import os
import pathlib
import re
import typing as tp

import beartype

import debarch.compression
import debarch.errors
import debarch.storable

logger = logging.getLogger(__name__)

_PACKAGE_DATA_DPATH = pathlib.Path(__file__).parent / "data"


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class CpuEntry:
    """A CPU known to the packaging system."""

    name: str
    """Debian CPU name (e.g., "amd64")."""

    gnu_name: str
    """GNU CPU name (e.g., "x86_64")."""

    regex: str
    """Regex matching the CPU part of config.guess output."""

    bits: int
    """Size in bits of integers and pointers."""

    endian: str
    """Byte order, "little" or "big"."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class OsEntry:
    """An operating system (with its ABI) known to the packaging system."""

    name: str
    """Debian "abi-os" name (e.g., "gnu-linux")."""

    gnu_name: str
    """GNU system name (e.g., "linux-gnu")."""

    regex: str
    """Regex matching the system part of config.guess output."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class TripletEntry:
    """Mapping from a Debian triplet to a Debian architecture."""

    debtriplet: str
    """Debian triplet, possibly containing "<cpu>"."""

    debarch: str
    """Debian architecture, possibly containing "<cpu>"."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class AbiEntry:
    """ABI whose integer size overrides the CPU one."""

    name: str
    bits: int


EntryT = tp.TypeVar("EntryT")


class Table(debarch.storable.Storable, tp.Generic[EntryT]):
    """Whitespace-separated data table with one entry per matching line.

    Comment lines and lines without enough columns are skipped. Subclasses
    describe the layout with `line_re` and convert between match groups and
    entries.
    """

    name: tp.ClassVar[str]
    header: tp.ClassVar[str]
    line_re: tp.ClassVar[re.Pattern[str]]

    def __init__(self, entries: tp.Iterable[EntryT] = ()) -> None:
        self.entries: list[EntryT] = list(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> tp.Iterator[EntryT]:
        return iter(self.entries)

    @beartype.beartype
    def parse(self, fd: io.TextIOBase, desc: str) -> int:
        """Append entries read from fd, returning how many were added."""
        count = 0
        for line in fd:
            match = self.line_re.match(line)
            if match is None:
                continue
            self.entries.append(self._make_entry(match.groups(), desc))
            count += 1
        return count

    @beartype.beartype
    def output(self, fd: io.TextIOBase | None = None) -> str:
        """Format the table, writing it to fd too if given."""
        lines = [f"# {self.header}"]
        for entry in self.entries:
            lines.append("\t".join(self._format_entry(entry)))
        text = "\n".join(lines) + "\n"
        if fd is not None:
            fd.write(text)
        return text

    def _make_entry(self, groups: tuple[str, ...], desc: str) -> EntryT:
        raise NotImplementedError

    def _format_entry(self, entry: EntryT) -> tuple[str, ...]:
        raise NotImplementedError


class CpuTable(Table[CpuEntry]):
    """Known CPUs, in lookup order."""

    name = "cputable"
    header = "<Debian name>\t<GNU name>\t<config.guess regex>\t<Bits>\t<Endianness>"
    line_re = re.compile(r"^(?!#)(\S+)\s+(\S+)\s+(\S+)\s+(\d+)\s+(big|little)\b")

    def _make_entry(self, groups: tuple[str, ...], desc: str) -> CpuEntry:
        name, gnu_name, regex, bits, endian = groups
        _check_regex(regex, name, desc)
        return CpuEntry(
            name=name, gnu_name=gnu_name, regex=regex, bits=int(bits), endian=endian
        )

    def _format_entry(self, entry: CpuEntry) -> tuple[str, ...]:
        return (entry.name, entry.gnu_name, entry.regex, str(entry.bits), entry.endian)


class OsTable(Table[OsEntry]):
    """Known ABI/OS pairs, in lookup order."""

    name = "ostable"
    header = "<Debian name>\t<GNU name>\t<config.guess regex>"
    line_re = re.compile(r"^(?!#)(\S+)\s+(\S+)\s+(\S+)")

    def _make_entry(self, groups: tuple[str, ...], desc: str) -> OsEntry:
        name, gnu_name, regex = groups
        _check_regex(regex, name, desc)
        return OsEntry(name=name, gnu_name=gnu_name, regex=regex)

    def _format_entry(self, entry: OsEntry) -> tuple[str, ...]:
        return (entry.name, entry.gnu_name, entry.regex)


class TripletTable(Table[TripletEntry]):
    """Debian triplet to Debian architecture mappings."""

    name = "triplettable"
    header = "<Debian triplet>\t<Debian arch>"
    line_re = re.compile(r"^(?!#)(\S+)\s+(\S+)")

    def _make_entry(self, groups: tuple[str, ...], desc: str) -> TripletEntry:
        debtriplet, debarch = groups
        return TripletEntry(debtriplet=debtriplet, debarch=debarch)

    def _format_entry(self, entry: TripletEntry) -> tuple[str, ...]:
        return (entry.debtriplet, entry.debarch)


class AbiTable(Table[AbiEntry]):
    """ABI attribute overrides."""

    name = "abitable"
    header = "<Debian name>\t<Bits>"
    line_re = re.compile(r"^(?!#)(\S+)\s+(\d+)\b")

    def _make_entry(self, groups: tuple[str, ...], desc: str) -> AbiEntry:
        name, bits = groups
        return AbiEntry(name=name, bits=int(bits))

    def _format_entry(self, entry: AbiEntry) -> tuple[str, ...]:
        return (entry.name, str(entry.bits))


TABLE_CLASSES: dict[str, type[Table[tp.Any]]] = {
    cls.name: cls for cls in (CpuTable, OsTable, TripletTable, AbiTable)
}


@beartype.beartype
def get_data_dpath() -> pathlib.Path:
    """Get the architecture data directory, respecting DPKG_DATADIR."""
    env_datadir = os.environ.get("DPKG_DATADIR")
    if env_datadir:
        return pathlib.Path(env_datadir)
    return _PACKAGE_DATA_DPATH


@beartype.beartype
def load_table(name: str, data_dpath: pathlib.Path | None = None) -> Table[tp.Any]:
    """Load a table by name, reading it at most once per data directory.

    The caller gets its own copy, so loading more entries into it does not
    change what later calls return.
    """
    if name not in TABLE_CLASSES:
        names = ", ".join(TABLE_CLASSES)
        raise debarch.errors.TableError(
            message=f"Unknown table '{name}'",
            hint=f"Known tables: {names}.",
            source=name,
        )
    if data_dpath is None:
        data_dpath = get_data_dpath()
    table = _load_table_cached(name, data_dpath)
    return type(table)(table.entries)


@beartype.beartype
def read_cputable(data_dpath: pathlib.Path | None = None) -> CpuTable:
    """Load cputable."""
    return tp.cast(CpuTable, load_table("cputable", data_dpath))


@beartype.beartype
def read_ostable(data_dpath: pathlib.Path | None = None) -> OsTable:
    """Load ostable."""
    return tp.cast(OsTable, load_table("ostable", data_dpath))


@beartype.beartype
def read_triplettable(data_dpath: pathlib.Path | None = None) -> TripletTable:
    """Load triplettable."""
    return tp.cast(TripletTable, load_table("triplettable", data_dpath))


@beartype.beartype
def read_abitable(data_dpath: pathlib.Path | None = None) -> AbiTable:
    """Load abitable."""
    return tp.cast(AbiTable, load_table("abitable", data_dpath))


@functools.cache
def _load_table_cached(name: str, data_dpath: pathlib.Path) -> Table[tp.Any]:
    table_fpath = data_dpath / name
    if not debarch.compression.find_readable_fpath(table_fpath).is_file():
        raise debarch.errors.TableError.make(
            f"Cannot open {name}: {table_fpath} does not exist", str(table_fpath)
        )

    table = TABLE_CLASSES[name]()
    count = table.load(table_fpath)
    logger.debug("Loaded %d entries from %s", count, table_fpath)
    return table


@beartype.beartype
def _check_regex(regex: str, name: str, desc: str) -> None:
    """Raise TableError if regex does not compile."""
    try:
        re.compile(regex)
    except re.error as err:
        raise debarch.errors.TableError.make(
            f"Invalid regex '{regex}' for '{name}' in {desc}: {err}", desc
        ) from None

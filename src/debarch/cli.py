"""CLI definition using tyro."""

import dataclasses
import logging
import sys
import typing as tp

import beartype
import tyro

import debarch.arch
import debarch.errors
import debarch.platform
import debarch.tables


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class Query:
    """Print the variables describing an architecture (default: the host)."""

    arch: tp.Annotated[str | None, tyro.conf.arg(aliases=("-a",))] = None
    """Debian architecture to describe."""

    gnu_type: tp.Annotated[str | None, tyro.conf.arg(aliases=("-t",))] = None
    """GNU triplet to describe instead of a Debian architecture."""

    verbose: bool = False
    """Show detailed output."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class Is:
    """Exit 0 if an architecture matches an alias or wildcard, 1 otherwise."""

    arch: tyro.conf.Positional[str]
    """Debian architecture to check."""

    alias: tyro.conf.Positional[str]
    """Architecture or wildcard such as "linux-any"."""

    verbose: bool = False
    """Show detailed output."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class Concerned:
    """Exit 0 if an architecture is selected by a restriction list, 1 otherwise."""

    arches: tyro.conf.Positional[str]
    """Whitespace-separated list such as "linux-any !armel"."""

    arch: tp.Annotated[str | None, tyro.conf.arg(aliases=("-a",))] = None
    """Debian architecture to check (default: the host)."""

    verbose: bool = False
    """Show detailed output."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class List:
    """List known architectures."""

    match: tp.Annotated[str | None, tyro.conf.arg(aliases=("-m",))] = None
    """Only list architectures matching this wildcard."""

    verbose: bool = False
    """Show detailed output."""


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class Table:
    """Write an architecture data table."""

    name: tyro.conf.Positional[
        tp.Literal["cputable", "ostable", "triplettable", "abitable"]
    ]
    """Table to write."""

    output: tp.Annotated[str, tyro.conf.arg(aliases=("-o",))] = "-"
    """Destination path, "-" for standard output. .gz, .bz2, .xz, .lzma compress."""

    verbose: bool = False
    """Show detailed output."""


Command = Query | Is | Concerned | List | Table


@beartype.beartype
def parse_args(argv: list[str] | None = None) -> Command:
    """Parse command line arguments into a command."""
    return tyro.cli(Command, args=argv)  # type: ignore[arg-type]


@beartype.beartype
def run_query(cmd: Query) -> None:
    """Run the query command."""
    if cmd.arch and cmd.gnu_type:
        raise debarch.errors.ArchError(
            message="Cannot describe both --arch and --gnu-type",
            hint="Pass only one of them.",
        )

    if cmd.gnu_type:
        arch = debarch.arch.gnutriplet_to_debarch(cmd.gnu_type)
        if arch is None:
            raise debarch.errors.ArchError(
                message=f"Unknown GNU system type '{cmd.gnu_type}'",
                hint="Expected a triplet such as 'x86_64-linux-gnu'.",
                arch=cmd.gnu_type,
            )
    else:
        arch = cmd.arch or debarch.platform.get_host_arch()

    debtriplet = debarch.arch.debarch_to_debtriplet(arch)
    gnu_type = debarch.arch.debtriplet_to_gnutriplet(debtriplet)
    cpuattrs = debarch.arch.debarch_to_cpuattrs(arch)
    if debtriplet is None or gnu_type is None or cpuattrs is None:
        raise debarch.errors.ArchError.make(arch)

    gnu_cpu, gnu_system = gnu_type.split("-", 1)
    variables = {
        "ARCH": arch,
        "ARCH_ABI": debtriplet.abi,
        "ARCH_OS": debtriplet.os,
        "ARCH_CPU": debtriplet.cpu,
        "ARCH_BITS": str(cpuattrs.bits),
        "ARCH_ENDIAN": cpuattrs.endian,
        "GNU_CPU": gnu_cpu,
        "GNU_SYSTEM": gnu_system,
        "GNU_TYPE": gnu_type,
        "MULTIARCH": debarch.arch.gnutriplet_to_multiarch(gnu_type),
    }
    for key, value in variables.items():
        print(f"DEB_HOST_{key}={value}")


@beartype.beartype
def run_is(cmd: Is) -> bool:
    """Run the is command."""
    return debarch.arch.debarch_is(cmd.arch, cmd.alias)


@beartype.beartype
def run_concerned(cmd: Concerned) -> bool:
    """Run the concerned command."""
    arch = cmd.arch or debarch.platform.get_host_arch()
    arches = debarch.arch.split_arch_list(cmd.arches)
    return debarch.arch.debarch_is_concerned(arch, arches)


@beartype.beartype
def run_list(cmd: List) -> None:
    """Run the list command."""
    for arch in debarch.arch.get_valid_arches():
        if cmd.match and not debarch.arch.debarch_is(arch, cmd.match):
            continue
        print(arch)


@beartype.beartype
def run_table(cmd: Table) -> None:
    """Run the table command."""
    table = debarch.tables.load_table(cmd.name)
    table.save(cmd.output)


@beartype.beartype
def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    command = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if command.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    try:
        match command:
            case Query() as cmd:
                run_query(cmd)
            case Is() as cmd:
                sys.exit(0 if run_is(cmd) else 1)
            case Concerned() as cmd:
                sys.exit(0 if run_concerned(cmd) else 1)
            case List() as cmd:
                run_list(cmd)
            case Table() as cmd:
                run_table(cmd)
    except (
        debarch.errors.ArchError,
        debarch.errors.PlatformError,
        debarch.errors.StorableError,
        debarch.errors.TableError,
    ) as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)

"""Tests for CLI commands."""

import gzip
import io
import pathlib
import sys

import pytest

import debarch.cli
import debarch.tables


def _exit_code(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as exc_info:
        debarch.cli.main(argv)
    return exc_info.value.code


def test_parse_args_builds_commands() -> None:
    """parse_args maps each subcommand onto its dataclass."""
    query = debarch.cli.parse_args(["query", "--arch", "i386"])
    assert query == debarch.cli.Query(arch="i386")

    is_ = debarch.cli.parse_args(["is", "armhf", "any-arm", "--verbose"])
    assert is_ == debarch.cli.Is(arch="armhf", alias="any-arm", verbose=True)

    concerned = debarch.cli.parse_args(["concerned", "linux-any !armel"])
    assert concerned == debarch.cli.Concerned(arches="linux-any !armel")

    assert debarch.cli.parse_args(["list"]) == debarch.cli.List()


def test_parse_args_short_aliases() -> None:
    """-a, -t, -m and -o are short forms of the long options."""
    assert debarch.cli.parse_args(["query", "-t", "x86_64-linux-gnu"]) == (
        debarch.cli.Query(gnu_type="x86_64-linux-gnu")
    )
    assert debarch.cli.parse_args(["list", "-m", "linux-any"]) == (
        debarch.cli.List(match="linux-any")
    )
    assert debarch.cli.parse_args(["table", "abitable", "-o", "out.gz"]) == (
        debarch.cli.Table(name="abitable", output="out.gz")
    )


@pytest.mark.parametrize("name", sorted(debarch.tables.TABLE_CLASSES))
def test_parse_args_accepts_every_table(name: str) -> None:
    """table accepts the name of every known data table."""
    assert debarch.cli.parse_args(["table", name]) == debarch.cli.Table(name=name)


def test_query_rejects_arch_and_gnu_type(capsys) -> None:
    """query accepts either --arch or --gnu-type, not both."""
    argv = ["query", "--arch", "amd64", "--gnu-type", "x86_64-linux-gnu"]
    assert _exit_code(argv) == 1
    assert "Cannot describe both" in capsys.readouterr().err


def test_query_arch(capsys) -> None:
    """query prints the DEB_HOST_* variables of an architecture."""
    debarch.cli.main(["query", "--arch", "i386"])

    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "DEB_HOST_ARCH=i386",
        "DEB_HOST_ARCH_ABI=gnu",
        "DEB_HOST_ARCH_OS=linux",
        "DEB_HOST_ARCH_CPU=i386",
        "DEB_HOST_ARCH_BITS=32",
        "DEB_HOST_ARCH_ENDIAN=little",
        "DEB_HOST_GNU_CPU=i686",
        "DEB_HOST_GNU_SYSTEM=linux-gnu",
        "DEB_HOST_GNU_TYPE=i686-linux-gnu",
        "DEB_HOST_MULTIARCH=i386-linux-gnu",
    ]


def test_query_gnu_type(capsys) -> None:
    """query --gnu-type describes the architecture of a GNU triplet."""
    debarch.cli.main(["query", "-t", "arm-linux-gnueabihf"])

    out = capsys.readouterr().out
    assert "DEB_HOST_ARCH=armhf\n" in out
    assert "DEB_HOST_ARCH_ABI=gnueabihf\n" in out
    assert "DEB_HOST_MULTIARCH=arm-linux-gnueabihf\n" in out


def test_query_defaults_to_host(monkeypatch, capsys) -> None:
    """query without arguments describes the host architecture."""
    monkeypatch.setenv("DEB_HOST_ARCH", "x32")

    debarch.cli.main(["query"])
    out = capsys.readouterr().out
    assert "DEB_HOST_ARCH=x32\n" in out
    assert "DEB_HOST_ARCH_BITS=32\n" in out
    assert "DEB_HOST_GNU_TYPE=x86_64-linux-gnux32\n" in out


def test_query_unknown_arch(capsys) -> None:
    """query reports unknown architectures on stderr and exits 1."""
    assert _exit_code(["query", "-a", "bogus"]) == 1

    err = capsys.readouterr().err
    assert "Error: Unknown Debian architecture 'bogus'" in err
    assert "Hint:" in err


def test_query_unknown_gnu_type(capsys) -> None:
    """query reports unknown GNU triplets on stderr and exits 1."""
    assert _exit_code(["query", "-t", "z80-none"]) == 1
    assert "Unknown GNU system type 'z80-none'" in capsys.readouterr().err


@pytest.mark.parametrize(
    ("arch", "alias", "expected"),
    [
        ("amd64", "linux-any", 0),
        ("armhf", "any-arm", 0),
        ("hurd-i386", "linux-any", 1),
        ("i386", "amd64", 1),
    ],
)
def test_is(arch: str, alias: str, expected: int) -> None:
    """is exits 0 on a match and 1 otherwise."""
    assert _exit_code(["is", arch, alias]) == expected


@pytest.mark.parametrize(
    ("arch", "arches", "expected"),
    [
        ("amd64", "linux-any !armel", 0),
        ("armel", "linux-any !armel", 1),
        ("armel", "!amd64 !i386", 0),
        ("amd64", "!amd64 !i386", 1),
        ("amd64", "i386", 1),
    ],
)
def test_concerned(arch: str, arches: str, expected: int) -> None:
    """concerned exits 0 when the architecture is selected."""
    assert _exit_code(["concerned", arches, "--arch", arch]) == expected


def test_concerned_uses_host(monkeypatch) -> None:
    """concerned checks the host architecture by default."""
    monkeypatch.setenv("DEB_HOST_ARCH", "arm64")

    assert _exit_code(["concerned", "any-arm64"]) == 0
    assert _exit_code(["concerned", "any-amd64"]) == 1


def test_concerned_invalid_list(capsys) -> None:
    """concerned rejects malformed restriction lists."""
    assert _exit_code(["concerned", "amd64 b@d", "-a", "amd64"]) == 1
    assert "Error: Invalid architecture 'b@d'" in capsys.readouterr().err


def test_list(capsys) -> None:
    """list prints every valid architecture."""
    debarch.cli.main(["list"])

    arches = capsys.readouterr().out.splitlines()
    assert "amd64" in arches
    assert "hurd-i386" in arches
    assert len(arches) == len(set(arches))


def test_list_match(capsys) -> None:
    """list --match keeps only architectures matching the wildcard."""
    debarch.cli.main(["list", "--match", "kfreebsd-any"])

    arches = capsys.readouterr().out.splitlines()
    assert "kfreebsd-amd64" in arches
    assert all(arch.startswith("kfreebsd-") for arch in arches)


def test_table_stdout(capsys) -> None:
    """table writes a data table to standard output."""
    debarch.cli.main(["table", "cputable"])

    out = capsys.readouterr().out
    assert out.startswith("# <Debian name>\t<GNU name>")
    assert "amd64\tx86_64\t(amd64|x86_64)\t64\tlittle\n" in out


def test_table_compressed_output(tmp_path: pathlib.Path) -> None:
    """table -o compresses based on the output extension."""
    fpath = tmp_path / "abitable.gz"
    debarch.cli.main(["table", "abitable", "-o", str(fpath)])

    assert gzip.decompress(fpath.read_bytes()).decode() == (
        "# <Debian name>\t<Bits>\ngnuabin32\t32\ngnux32\t32\n"
    )


def test_table_unwritable_output(tmp_path: pathlib.Path, capsys) -> None:
    """table reports write failures on stderr and exits 1."""
    fpath = tmp_path / "missing" / "ostable"

    assert _exit_code(["table", "ostable", "-o", str(fpath)]) == 1
    assert "Error: Cannot write" in capsys.readouterr().err


def test_table_unknown_name() -> None:
    """table only accepts known table names."""
    assert _exit_code(["table", "bogus"]) == 2


def test_table_broken_stdout(monkeypatch, capsys) -> None:
    """table reports a closed standard output as an error instead of a traceback."""

    class BrokenStdout(io.StringIO):
        def write(self, text: str) -> int:
            raise BrokenPipeError(32, "Broken pipe")

    monkeypatch.setattr(sys, "stdout", BrokenStdout())

    assert _exit_code(["table", "cputable"]) == 1
    assert "Error: Cannot write standard output" in capsys.readouterr().err

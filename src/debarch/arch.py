"""Translation between Debian architectures, Debian triplets and GNU triplets.

A Debian architecture ("amd64", "armhf", "kfreebsd-i386") maps to a Debian
triplet (abi, os, cpu), e.g. ("gnu", "linux", "amd64"). The triplet maps to a
GNU triplet through the GNU names of its CPU and of its "abi-os" pair, e.g.
"x86_64-linux-gnu". Parsing a GNU triplet goes the other way through the
config.guess regexes of cputable and ostable, first match wins.

Wildcards put "any" in one or more triplet positions: "any" alone,
"linux-any" (os-cpu) or full "abi-os-cpu" triplets such as
"gnu-linux-any". Restriction lists such as "linux-any !armel" are checked
with `debarch_is_concerned()`.
"""

import collections.abc
import dataclasses
import functools
import logging
import pathlib
import re

import beartype

import debarch.errors
import debarch.tables

logger = logging.getLogger(__name__)

_LINUX_PREFIX_RE = re.compile(r"^linux-([^-]*)")
_MULTIARCH_I386_RE = re.compile(r"i[4567]86")
_ARCH_NAME_RE = re.compile(r"!?[A-Za-z0-9][A-Za-z0-9-]*")


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class DebTriplet:
    """Debian (abi, os, cpu) triplet."""

    abi: str
    os: str
    cpu: str

    def __str__(self) -> str:
        return f"{self.abi}-{self.os}-{self.cpu}"

    @property
    def is_wildcard(self) -> bool:
        """True if any part is "any"."""
        return "any" in (self.abi, self.os, self.cpu)

    def matches(self, alias: "DebTriplet") -> bool:
        """True if every part equals the alias part or the alias part is "any"."""
        return (
            alias.abi in ("any", self.abi)
            and alias.os in ("any", self.os)
            and alias.cpu in ("any", self.cpu)
        )

    @staticmethod
    def from_string(text: str) -> "DebTriplet | None":
        """Parse "abi-os-cpu"; None unless there are exactly three parts."""
        parts = text.split("-", 2)
        if len(parts) != 3:
            return None
        return DebTriplet(*parts)


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class CpuAttrs:
    """Integer size and byte order of an architecture."""

    bits: int
    endian: str


class ArchTable:
    """Lookup maps built from cputable, ostable, triplettable and abitable."""

    def __init__(
        self,
        cputable: debarch.tables.CpuTable,
        ostable: debarch.tables.OsTable,
        triplettable: debarch.tables.TripletTable,
        abitable: debarch.tables.AbiTable,
    ) -> None:
        self._cpus: list[str] = []
        self._cpu_gnu: dict[str, str] = {}
        self._cpu_re: dict[str, re.Pattern[str]] = {}
        self._cpu_bits: dict[str, int] = {}
        self._cpu_endian: dict[str, str] = {}
        for cpu in cputable:
            self._cpus.append(cpu.name)
            self._cpu_gnu[cpu.name] = cpu.gnu_name
            self._cpu_re[cpu.name] = re.compile(f"(?:{cpu.regex})")
            self._cpu_bits[cpu.name] = cpu.bits
            self._cpu_endian[cpu.name] = cpu.endian

        self._oses: list[str] = []
        self._os_gnu: dict[str, str] = {}
        self._os_re: dict[str, re.Pattern[str]] = {}
        for os_entry in ostable:
            self._oses.append(os_entry.name)
            self._os_gnu[os_entry.name] = os_entry.gnu_name
            self._os_re[os_entry.name] = re.compile(f"(?:.*-)?(?:{os_entry.regex})")

        self._abi_bits: dict[str, int] = {abi.name: abi.bits for abi in abitable}

        self._debtriplet_to_debarch: dict[str, str] = {}
        self._debarch_to_debtriplet: dict[str, str] = {}
        for row in triplettable:
            if "<cpu>" not in row.debtriplet:
                self._debarch_to_debtriplet[row.debarch] = row.debtriplet
                self._debtriplet_to_debarch[row.debtriplet] = row.debarch
                continue

            for cpu in self._cpus:
                debtriplet = row.debtriplet.replace("<cpu>", cpu, 1)
                arch = row.debarch.replace("<cpu>", cpu, 1)
                # Earlier rows take precedence over template expansions.
                if (
                    arch in self._debarch_to_debtriplet
                    or debtriplet in self._debtriplet_to_debarch
                ):
                    continue
                self._debarch_to_debtriplet[arch] = debtriplet
                self._debtriplet_to_debarch[debtriplet] = arch

    @classmethod
    def load(cls, data_dpath: pathlib.Path | None = None) -> "ArchTable":
        """Build an ArchTable from the tables in data_dpath."""
        return cls(
            debarch.tables.read_cputable(data_dpath),
            debarch.tables.read_ostable(data_dpath),
            debarch.tables.read_triplettable(data_dpath),
            debarch.tables.read_abitable(data_dpath),
        )

    @beartype.beartype
    def get_valid_arches(self) -> tuple[str, ...]:
        """All architectures formed by a known OS and a known CPU."""
        arches = []
        for os_name in self._oses:
            parts = os_name.split("-", 1)
            if len(parts) != 2:
                continue
            abi, os_part = parts
            for cpu in self._cpus:
                arch = self.debtriplet_to_debarch(DebTriplet(abi, os_part, cpu))
                if arch is not None:
                    arches.append(arch)
        return tuple(arches)

    @beartype.beartype
    def debtriplet_to_gnutriplet(self, debtriplet: DebTriplet | None) -> str | None:
        """GNU triplet of a Debian triplet."""
        if debtriplet is None:
            return None
        abi_os = f"{debtriplet.abi}-{debtriplet.os}"
        if debtriplet.cpu not in self._cpu_gnu or abi_os not in self._os_gnu:
            return None
        return f"{self._cpu_gnu[debtriplet.cpu]}-{self._os_gnu[abi_os]}"

    @beartype.beartype
    def gnutriplet_to_debtriplet(self, gnu: str | None) -> DebTriplet | None:
        """Debian triplet of a GNU triplet such as "x86_64-pc-linux-gnu"."""
        if gnu is None:
            return None
        parts = gnu.split("-", 1)
        if len(parts) != 2:
            return None
        gnu_cpu, gnu_os = parts

        cpu = next(
            (name for name in self._cpus if self._cpu_re[name].fullmatch(gnu_cpu)),
            None,
        )
        os_name = next(
            (name for name in self._oses if self._os_re[name].fullmatch(gnu_os)),
            None,
        )
        if cpu is None or os_name is None:
            return None

        abi_os = os_name.split("-", 1)
        if len(abi_os) != 2:
            return None
        return DebTriplet(abi_os[0], abi_os[1], cpu)

    @beartype.beartype
    def debtriplet_to_debarch(self, debtriplet: DebTriplet | None) -> str | None:
        """Debian architecture of a Debian triplet."""
        if debtriplet is None:
            return None
        return self._debtriplet_to_debarch.get(str(debtriplet))

    @beartype.beartype
    def debarch_to_debtriplet(self, arch: str | None) -> DebTriplet | None:
        """Debian triplet of a Debian architecture; "linux-<cpu>" means "<cpu>"."""
        if arch is None:
            return None
        match = _LINUX_PREFIX_RE.match(arch)
        if match:
            arch = match.group(1)

        debtriplet = self._debarch_to_debtriplet.get(arch)
        if debtriplet is None:
            return None
        return DebTriplet.from_string(debtriplet)

    @beartype.beartype
    def debarch_to_gnutriplet(self, arch: str | None) -> str | None:
        return self.debtriplet_to_gnutriplet(self.debarch_to_debtriplet(arch))

    @beartype.beartype
    def gnutriplet_to_debarch(self, gnu: str | None) -> str | None:
        return self.debtriplet_to_debarch(self.gnutriplet_to_debtriplet(gnu))

    @beartype.beartype
    def debarch_to_multiarch(self, arch: str | None) -> str | None:
        """Multiarch tuple of a Debian architecture (e.g., "i386-linux-gnu")."""
        gnu = self.debarch_to_gnutriplet(arch)
        if gnu is None:
            return None
        return gnutriplet_to_multiarch(gnu)

    @beartype.beartype
    def debwildcard_to_debtriplet(self, arch: str) -> DebTriplet | None:
        """Debian triplet of a wildcard, with "any" filling missing parts."""
        parts = arch.split("-", 2)
        if "any" not in parts:
            return self.debarch_to_debtriplet(arch)

        if len(parts) == 3:
            return DebTriplet(*parts)
        if len(parts) == 2:
            return DebTriplet("any", parts[0], parts[1])
        return DebTriplet("any", "any", "any")

    @beartype.beartype
    def debarch_to_cpuattrs(self, arch: str) -> CpuAttrs | None:
        """Bits and endianness of an architecture; ABI bits take precedence."""
        debtriplet = self.debarch_to_debtriplet(arch)
        if debtriplet is None or debtriplet.cpu not in self._cpu_bits:
            return None
        bits = self._abi_bits.get(debtriplet.abi, self._cpu_bits[debtriplet.cpu])
        return CpuAttrs(bits=bits, endian=self._cpu_endian[debtriplet.cpu])

    @beartype.beartype
    def debarch_eq(self, a: str, b: str) -> bool:
        """True if both names denote the same architecture."""
        if a == b:
            return True

        a_triplet = self.debarch_to_debtriplet(a)
        b_triplet = self.debarch_to_debtriplet(b)
        if a_triplet is None or b_triplet is None:
            return False
        return a_triplet == b_triplet

    @beartype.beartype
    def debarch_is(self, real: str, alias: str) -> bool:
        """True if the architecture real is matched by alias (an arch or wildcard)."""
        if alias in (real, "any"):
            return True

        real_triplet = self.debarch_to_debtriplet(real)
        alias_triplet = self.debwildcard_to_debtriplet(alias)
        if real_triplet is None or alias_triplet is None:
            return False
        return real_triplet.matches(alias_triplet)

    @beartype.beartype
    def debarch_is_wildcard(self, arch: str) -> bool:
        if arch == "all":
            return False
        debtriplet = self.debwildcard_to_debtriplet(arch)
        if debtriplet is None:
            return False
        return debtriplet.is_wildcard

    @beartype.beartype
    def debarch_is_concerned(
        self, host_arch: str, arches: collections.abc.Iterable[str]
    ) -> bool:
        """True if host_arch is selected by a restriction list like ["!armel"].

        A negated entry that matches rejects the host outright. A negated entry
        that does not match selects every other architecture, unless a later
        negation matches. A positive entry that matches selects the host.
        """
        seen_arch = False
        for arch in arches:
            arch = arch.lower()
            if arch.startswith("!"):
                if self.debarch_is(host_arch, arch[1:]):
                    return False
                seen_arch = True
            elif self.debarch_is(host_arch, arch):
                return True
        return seen_arch


@functools.cache
def _get_arch_table_cached(data_dpath: pathlib.Path) -> ArchTable:
    table = ArchTable.load(data_dpath)
    logger.debug("Built architecture maps from %s", data_dpath)
    return table


@beartype.beartype
def get_arch_table() -> ArchTable:
    """ArchTable for the current data directory, built once per directory."""
    return _get_arch_table_cached(debarch.tables.get_data_dpath())


@beartype.beartype
def gnutriplet_to_multiarch(gnu: str) -> str:
    """Multiarch tuple of a GNU triplet: i486..i786 all become i386."""
    cpu, sep, rest = gnu.partition("-")
    if sep and _MULTIARCH_I386_RE.fullmatch(cpu):
        return f"i386-{rest}"
    return gnu


@beartype.beartype
def split_arch_list(text: str) -> tuple[str, ...]:
    """Split a whitespace-separated restriction list such as "linux-any !armel"."""
    arches = tuple(text.split())
    for arch in arches:
        if not _ARCH_NAME_RE.fullmatch(arch):
            raise debarch.errors.ArchError(
                message=f"Invalid architecture '{arch}' in list '{text}'",
                hint="Architectures are alphanumeric, optionally with '-' "
                "and a leading '!'.",
                arch=arch,
            )
    return arches


@beartype.beartype
def get_valid_arches() -> tuple[str, ...]:
    """All valid Debian architectures, ordered by OS then CPU."""
    return get_arch_table().get_valid_arches()


@beartype.beartype
def debtriplet_to_gnutriplet(debtriplet: DebTriplet | None) -> str | None:
    return get_arch_table().debtriplet_to_gnutriplet(debtriplet)


@beartype.beartype
def gnutriplet_to_debtriplet(gnu: str | None) -> DebTriplet | None:
    return get_arch_table().gnutriplet_to_debtriplet(gnu)


@beartype.beartype
def debtriplet_to_debarch(debtriplet: DebTriplet | None) -> str | None:
    return get_arch_table().debtriplet_to_debarch(debtriplet)


@beartype.beartype
def debarch_to_debtriplet(arch: str | None) -> DebTriplet | None:
    return get_arch_table().debarch_to_debtriplet(arch)


@beartype.beartype
def debarch_to_gnutriplet(arch: str | None) -> str | None:
    return get_arch_table().debarch_to_gnutriplet(arch)


@beartype.beartype
def gnutriplet_to_debarch(gnu: str | None) -> str | None:
    return get_arch_table().gnutriplet_to_debarch(gnu)


@beartype.beartype
def debarch_to_multiarch(arch: str | None) -> str | None:
    return get_arch_table().debarch_to_multiarch(arch)


@beartype.beartype
def debwildcard_to_debtriplet(arch: str) -> DebTriplet | None:
    return get_arch_table().debwildcard_to_debtriplet(arch)


@beartype.beartype
def debarch_to_cpuattrs(arch: str) -> CpuAttrs | None:
    return get_arch_table().debarch_to_cpuattrs(arch)


@beartype.beartype
def debarch_eq(a: str, b: str) -> bool:
    return get_arch_table().debarch_eq(a, b)


@beartype.beartype
def debarch_is(real: str, alias: str) -> bool:
    return get_arch_table().debarch_is(real, alias)


@beartype.beartype
def debarch_is_wildcard(arch: str) -> bool:
    return get_arch_table().debarch_is_wildcard(arch)


@beartype.beartype
def debarch_is_concerned(
    host_arch: str, arches: collections.abc.Iterable[str]
) -> bool:
    return get_arch_table().debarch_is_concerned(host_arch, arches)

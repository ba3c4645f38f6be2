"""Build and host architecture detection."""

import functools
import logging
import os
import platform

import beartype

import debarch.arch
import debarch.errors

logger = logging.getLogger(__name__)

_GNU_SYSTEMS = {
    "linux": "linux-gnu",
    "darwin": "darwin",
    "freebsd": "freebsd",
    "netbsd": "netbsd",
    "openbsd": "openbsd",
}
"""Map from platform.system() (lowercased) to GNU system name."""


@beartype.beartype
def get_gnu_build_type() -> str:
    """Guess the GNU triplet of the running machine."""
    system = platform.system().lower()
    if system not in _GNU_SYSTEMS:
        raise debarch.errors.PlatformError(
            message=f"Unsupported operating system: {system or '(unknown)'}",
            hint="Set DEB_BUILD_ARCH to the build architecture.",
        )

    machine = platform.machine().lower()
    if not machine:
        raise debarch.errors.PlatformError(
            message="Cannot determine the machine type",
            hint="Set DEB_BUILD_ARCH to the build architecture.",
        )

    gnu_system = _GNU_SYSTEMS[system]
    if machine == "arm64":
        machine = "aarch64"
    elif system == "linux" and machine.startswith(("armv7", "armv8l")):
        gnu_system = "linux-gnueabihf"
    elif system == "linux" and machine.startswith(("armv5", "armv6")):
        gnu_system = "linux-gnueabi"

    return f"{machine}-{gnu_system}"


@functools.cache
@beartype.beartype
def get_raw_build_arch() -> str:
    """Get the Debian architecture of the running machine."""
    gnu_type = get_gnu_build_type()
    arch = debarch.arch.gnutriplet_to_debarch(gnu_type)
    if arch is None:
        raise debarch.errors.PlatformError(
            message=f"Unknown build system type: {gnu_type}",
            hint="Set DEB_BUILD_ARCH to the build architecture.",
        )
    logger.debug("Build system type %s is %s", gnu_type, arch)
    return arch


@beartype.beartype
def get_build_arch() -> str:
    """Get the build architecture, respecting DEB_BUILD_ARCH."""
    return os.environ.get("DEB_BUILD_ARCH") or get_raw_build_arch()


@beartype.beartype
def get_raw_host_arch() -> str:
    """Get the host architecture from DEB_HOST_GNU_TYPE, else the build one."""
    gnu_type = os.environ.get("DEB_HOST_GNU_TYPE")
    if gnu_type:
        arch = debarch.arch.gnutriplet_to_debarch(gnu_type)
        if arch is not None:
            return arch
        logger.warning(
            "Unknown GNU system type %s, falling back to default "
            "(native compilation)",
            gnu_type,
        )
    return get_raw_build_arch()


@beartype.beartype
def get_host_arch() -> str:
    """Get the host architecture, respecting DEB_HOST_ARCH."""
    return os.environ.get("DEB_HOST_ARCH") or get_raw_host_arch()

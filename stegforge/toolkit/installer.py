"""Dependency catalog and package-manager installer for the external analysis tools."""
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from stegforge.errors import ErrorCode, InstallError
from stegforge.toolkit.probe import Probe, binary_available, first_available
from stegforge.toolkit.wordlists import RockyouManager

logger = logging.getLogger(__name__)

# Per-command ceiling for package-manager runs
INSTALL_COMMAND_TIMEOUT = 900.0

OS_RELEASE = Path("/etc/os-release")


class Distro(str, Enum):
    DEBIAN = "debian"    # Ubuntu, Debian, Kali, Mint
    ARCH = "arch"        # Arch, Manjaro, EndeavourOS
    FEDORA = "fedora"    # Fedora, RHEL, CentOS, Rocky
    SUSE = "suse"        # openSUSE
    UNKNOWN = "unknown"


class InstallType(str, Enum):
    BUILTIN = "builtin"  # ships with the base system, never installed by us
    SYSTEM = "system"
    PIP = "pip"
    GEM = "gem"
    GO = "go"


@dataclass(frozen=True)
class ToolDependency:
    name: str
    binary: str
    install_type: InstallType
    description: str = ""
    alt_binaries: Tuple[str, ...] = ()
    apt: str = ""
    pacman: str = ""
    aur: str = ""
    dnf: str = ""
    zypper: str = ""
    pip: str = ""
    gem: str = ""
    go: str = ""
    manual_url: str = ""

    def system_package(self, distro: Distro) -> str:
        return {
            Distro.DEBIAN: self.apt,
            Distro.ARCH: self.pacman,
            Distro.FEDORA: self.dnf,
            Distro.SUSE: self.zypper,
        }.get(distro, "")


DEPENDENCIES: Tuple[ToolDependency, ...] = (
    ToolDependency(
        "file", "file", InstallType.BUILTIN,
        description="File type identification",
    ),
    ToolDependency(
        "strings", "strings", InstallType.BUILTIN,
        description="Extract printable strings",
    ),
    ToolDependency(
        "xxd", "xxd", InstallType.SYSTEM,
        apt="xxd", pacman="xxd", dnf="vim-common", zypper="vim-data-common",
        description="Hex dump utility",
    ),
    ToolDependency(
        "exiftool", "exiftool", InstallType.SYSTEM,
        apt="libimage-exiftool-perl", pacman="perl-image-exiftool",
        dnf="perl-Image-ExifTool", zypper="exiftool",
        description="Metadata extraction",
    ),
    ToolDependency(
        "binwalk", "binwalk", InstallType.SYSTEM,
        apt="binwalk", pacman="binwalk", dnf="binwalk", zypper="binwalk",
        description="Embedded file detection",
    ),
    ToolDependency(
        "foremost", "foremost", InstallType.SYSTEM,
        apt="foremost", pacman="foremost", dnf="foremost", zypper="foremost",
        description="File carving tool",
    ),
    ToolDependency(
        "steghide", "steghide", InstallType.SYSTEM,
        apt="steghide", pacman="steghide", dnf="steghide", zypper="steghide",
        description="Steganography hide/extract (JPG/BMP/WAV/AU)",
    ),
    ToolDependency(
        "zsteg", "zsteg", InstallType.GEM,
        gem="zsteg",
        description="LSB steganography (PNG/BMP)",
    ),
    ToolDependency(
        "pngcheck", "pngcheck", InstallType.SYSTEM,
        apt="pngcheck", pacman="pngcheck", dnf="pngcheck", zypper="pngcheck",
        description="PNG integrity check",
    ),
    ToolDependency(
        "stegoveritas", "stegoveritas", InstallType.PIP,
        pip="stegoveritas",
        description="Advanced image steganalysis",
    ),
    ToolDependency(
        "stegseek", "stegseek", InstallType.SYSTEM,
        apt="stegseek", aur="stegseek",
        manual_url="https://github.com/RickdeJager/stegseek/releases",
        description="Fast steghide brute-force cracker",
    ),
    ToolDependency(
        "openstego", "openstego", InstallType.SYSTEM,
        apt="openstego", aur="openstego",
        manual_url="https://github.com/syvaidya/OpenStego/releases",
        description="OpenStego extraction (PNG)",
    ),
    ToolDependency(
        "jsteg", "jsteg", InstallType.GO,
        go="lukechampine.com/jsteg@latest",
        description="JPEG steganography (no password)",
    ),
    ToolDependency(
        "GraphicsMagick", "gm", InstallType.SYSTEM,
        alt_binaries=("magick",),
        apt="graphicsmagick", pacman="graphicsmagick", dnf="GraphicsMagick", zypper="GraphicsMagick",
        description="Image identification and analysis",
    ),
    ToolDependency(
        "sox", "sox", InstallType.SYSTEM,
        apt="sox", pacman="sox", dnf="sox", zypper="sox",
        description="Audio spectrogram generation",
    ),
    ToolDependency(
        "stegolsb", "stegolsb", InstallType.PIP,
        pip="stego-lsb",
        description="WAV LSB steganography",
    ),
)


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    PRESENT = "present"     # already resolvable, nothing to do
    SKIPPED = "skipped"     # builtin tool, left to the base system
    FAILED = "failed"


@dataclass(frozen=True)
class InstallOutcome:
    name: str
    status: InstallStatus
    message: str = ""
    error_code: Optional[ErrorCode] = None
    manual_url: str = ""

    @property
    def ok(self) -> bool:
        return self.status != InstallStatus.FAILED


# ----------------------------------------------------------------------------
# Environment checks
# ----------------------------------------------------------------------------

def get_dependency(name: str) -> Optional[ToolDependency]:
    for dep in DEPENDENCIES:
        if dep.name.lower() == name.lower():
            return dep
    return None


def is_available(dep: ToolDependency, probe: Probe = binary_available) -> bool:
    return first_available((dep.binary, *dep.alt_binaries), probe) is not None


def missing_dependencies(probe: Probe = binary_available) -> List[str]:
    """Names of catalog entries whose binary (and alternates) cannot be found."""
    return [dep.name for dep in DEPENDENCIES if not is_available(dep, probe)]


def detect_distro(
    probe: Probe = binary_available,
    os_release: Path = OS_RELEASE,
    platform: str = sys.platform,
) -> Distro:
    """Guess the distro family from the package manager on PATH, then /etc/os-release."""
    if not platform.startswith("linux"):
        return Distro.UNKNOWN

    for manager, distro in (
        ("apt-get", Distro.DEBIAN),
        ("pacman", Distro.ARCH),
        ("dnf", Distro.FEDORA),
        ("zypper", Distro.SUSE),
    ):
        if probe(manager):
            return distro

    try:
        content = os_release.read_text(errors="ignore").lower()
    except OSError:
        return Distro.UNKNOWN

    markers = (
        (Distro.DEBIAN, ("ubuntu", "debian", "kali", "mint")),
        (Distro.ARCH, ("arch", "manjaro", "endeavour")),
        (Distro.FEDORA, ("fedora", "rhel", "centos", "rocky")),
        (Distro.SUSE, ("suse",)),
    )
    for distro, words in markers:
        if any(w in content for w in words):
            return distro
    return Distro.UNKNOWN


def install_hint(dep: ToolDependency, distro: Distro) -> str:
    """One-line manual install command for ``dep`` on ``distro``."""
    if dep.install_type == InstallType.BUILTIN:
        return f"'{dep.binary}' ships with the base system; install it with your package manager"
    if dep.install_type == InstallType.PIP:
        return f"pip install {dep.pip}"
    if dep.install_type == InstallType.GEM:
        return f"gem install {dep.gem}"
    if dep.install_type == InstallType.GO:
        return f"go install {dep.go}"

    pkg = dep.system_package(distro)
    if pkg:
        return " ".join(_system_command(distro, pkg))
    if distro == Distro.ARCH and dep.aur:
        return f"yay -S {dep.aur}"
    if dep.manual_url:
        return f"Manual install: {dep.manual_url}"
    return f"Please install '{dep.name}' manually."


# ----------------------------------------------------------------------------
# Command execution
# ----------------------------------------------------------------------------

async def run_command(
    cmd: Sequence[str],
    env: Optional[Dict[str, str]] = None,
    timeout: float = INSTALL_COMMAND_TIMEOUT,
) -> Tuple[int, str]:
    """Run one install command, returning (exit code, combined output)."""
    logger.debug(f"Install command: {' '.join(cmd)}")
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=env,
        )
    except OSError as e:
        return 127, f"Error executing '{' '.join(cmd)}': {e}"

    try:
        out, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return 124, f"'{' '.join(cmd)}' timed out after {timeout:g}s"

    return proc.returncode or 0, out.decode(errors="ignore") if out else ""


def _sudo() -> List[str]:
    geteuid = getattr(os, "geteuid", None)
    if geteuid is not None and geteuid() == 0:
        return []
    return ["sudo"]


def _system_command(distro: Distro, pkg: str) -> List[str]:
    if distro == Distro.DEBIAN:
        return _sudo() + ["apt-get", "install", "-y", pkg]
    if distro == Distro.ARCH:
        return _sudo() + ["pacman", "-S", "--noconfirm", pkg]
    if distro == Distro.FEDORA:
        return _sudo() + ["dnf", "install", "-y", pkg]
    if distro == Distro.SUSE:
        return _sudo() + ["zypper", "install", "-y", pkg]
    raise InstallError("unknown distro, cannot install automatically", code=ErrorCode.INSTALL_UNSUPPORTED)


class Installer:
    """
    Installs missing catalog entries one at a time.

    Each install type has one strategy; Arch falls back from pacman to an AUR
    helper and pip retries without --break-system-packages for older pips.
    A strategy that "succeeds" still fails the install if the binary does not
    resolve afterwards.
    """

    def __init__(
        self,
        distro: Optional[Distro] = None,
        probe: Probe = binary_available,
        runner=run_command,
    ):
        self.distro = distro if distro is not None else detect_distro(probe)
        self.probe = probe
        self.runner = runner

    async def install(self, dep: ToolDependency) -> InstallOutcome:
        if is_available(dep, self.probe):
            return InstallOutcome(dep.name, InstallStatus.PRESENT, f"{dep.name} already installed")

        if dep.install_type == InstallType.BUILTIN:
            return InstallOutcome(dep.name, InstallStatus.SKIPPED, install_hint(dep, self.distro))

        logger.info(f"Installing {dep.name} via {dep.install_type.value}")
        try:
            await self._run_strategy(dep)
            if not is_available(dep, self.probe):
                raise InstallError(
                    f"install command succeeded but '{dep.binary}' not found in PATH",
                    details={"tool": dep.name},
                )
        except InstallError as e:
            logger.warning(f"Install of {dep.name} failed: {e.message}")
            return InstallOutcome(dep.name, InstallStatus.FAILED, e.message, e.code, dep.manual_url)

        return InstallOutcome(dep.name, InstallStatus.INSTALLED, f"{dep.name} installed")

    async def _run_strategy(self, dep: ToolDependency) -> None:
        if dep.install_type == InstallType.SYSTEM:
            await self._install_system(dep)
        elif dep.install_type == InstallType.PIP:
            await self._install_pip(dep)
        elif dep.install_type == InstallType.GEM:
            await self._install_gem(dep)
        elif dep.install_type == InstallType.GO:
            await self._install_go(dep)
        else:
            raise InstallError(f"no installer for type {dep.install_type.value}", code=ErrorCode.INSTALL_UNSUPPORTED)

    async def _check(self, cmd: Sequence[str], env: Optional[Dict[str, str]] = None) -> None:
        rc, output = await self.runner(cmd, env=env)
        if rc != 0:
            tail = output.strip().splitlines()[-1:] if output else []
            reason = f": {tail[0]}" if tail else ""
            raise InstallError(f"'{' '.join(cmd)}' exited with {rc}{reason}", details={"output": output})

    async def _install_system(self, dep: ToolDependency) -> None:
        pkg = dep.system_package(self.distro)

        if self.distro == Distro.ARCH:
            if pkg:
                try:
                    await self._check(_system_command(self.distro, pkg))
                    return
                except InstallError:
                    if not dep.aur:
                        raise
            if dep.aur:
                await self._install_aur(dep.aur)
                return
            raise InstallError("no pacman/AUR package available", code=ErrorCode.INSTALL_UNSUPPORTED)

        if self.distro == Distro.UNKNOWN:
            raise InstallError("unknown distro, cannot install automatically", code=ErrorCode.INSTALL_UNSUPPORTED)
        if not pkg:
            raise InstallError(f"no {self.distro.value} package available", code=ErrorCode.INSTALL_UNSUPPORTED)
        await self._check(_system_command(self.distro, pkg))

    async def _install_aur(self, pkg: str) -> None:
        # AUR helpers escalate on their own; never run them under sudo
        for helper in ("yay", "paru"):
            if not self.probe(helper):
                continue
            rc, _ = await self.runner([helper, "-S", "--noconfirm", "--needed", pkg])
            if rc == 0:
                return
        raise InstallError(f"no AUR helper (yay/paru) found or install failed for {pkg}")

    async def _install_pip(self, dep: ToolDependency) -> None:
        pip = [sys.executable, "-m", "pip", "install"]
        rc, _ = await self.runner(pip + ["--break-system-packages", dep.pip])
        if rc != 0:
            # Older pips do not know --break-system-packages
            await self._check(pip + [dep.pip])

    async def _install_gem(self, dep: ToolDependency) -> None:
        if not self.probe("gem"):
            raise InstallError("gem not found, install ruby first", code=ErrorCode.INSTALL_UNSUPPORTED)
        await self._check(["gem", "install", dep.gem])

    async def _install_go(self, dep: ToolDependency) -> None:
        if not self.probe("go"):
            raise InstallError("go not found", code=ErrorCode.INSTALL_UNSUPPORTED)
        gopath = os.environ.get("GOPATH") or str(Path.home() / "go")
        env = os.environ.copy()
        env["GOBIN"] = str(Path(gopath) / "bin")
        await self._check(["go", "install", dep.go], env=env)


async def install_dependency(
    dep: ToolDependency,
    distro: Optional[Distro] = None,
    probe: Probe = binary_available,
    runner=run_command,
) -> InstallOutcome:
    """Install a single catalog entry with a throwaway Installer."""
    return await Installer(distro, probe, runner).install(dep)


async def install_missing(
    installer: Optional[Installer] = None,
    wordlists: Optional[RockyouManager] = None,
    on_outcome: Optional[Callable[[InstallOutcome], None]] = None,
) -> List[InstallOutcome]:
    """Install every missing catalog entry sequentially, then make sure rockyou.txt exists."""
    installer = installer or Installer()
    outcomes = []
    for dep in DEPENDENCIES:
        outcome = await installer.install(dep)
        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    wordlists = wordlists or RockyouManager()
    rockyou = await asyncio.to_thread(wordlists.ensure)
    if rockyou is None:
        logger.warning("rockyou.txt could not be located or downloaded; stegseek will be skipped")
    else:
        logger.info(f"rockyou.txt available at {rockyou}")
    return outcomes

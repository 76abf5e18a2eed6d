#!/usr/bin/python3
"""ubuntu-tuner — apply laptop tuning to an Ubuntu 24.04+ system.

Aimed at NVMe laptops: disk swap gives way to zRAM, the root filesystem stops
recording access times, and the larger modes add power-management daemons,
Flatpak, codecs and a .deb Firefox in place of the Snap.
"""

import argparse
import os
import pwd
import re
import shutil
import subprocess
import sys
import time
from pathlib import Path

# ── Constants ────────────────────────────────────────────────────────────────

FSTAB_PATH = Path("/etc/fstab")
SYSCTL_PATH = Path("/etc/sysctl.conf")
ZRAM_CONFIG_PATH = Path("/etc/default/zramswap")
FIREFOX_PIN_PATH = Path("/etc/apt/preferences.d/mozilla-firefox")
OS_RELEASE_PATH = Path("/etc/os-release")

MIN_UBUNTU = (24, 4)

# zram-tools ships zramswap.service and reads /etc/default/zramswap.
ZRAM_PACKAGE = "zram-tools"
ZRAM_ALGO = "zstd"
ZRAM_PERCENT = 50
ZRAM_PRIORITY = 100

SYSCTL_HEADER = "# Custom tuning for NVRAM/NVMe laptop"
SYSCTL_SETTINGS = {
    "vm.swappiness": "10",
    "vm.vfs_cache_pressure": "50",
}

ROOT_MOUNT_OPTION = "noatime"
CONFLICTING_ATIME_OPTIONS = ("atime", "relatime", "strictatime")

FIREFOX_PPA = "ppa:mozillateam/ppa"
FIREFOX_PIN = """\
Package: firefox*
Pin: release o=LP-PPA-mozillateam
Pin-Priority: 1001
"""

FLATHUB_URL = "https://flathub.org/repo/flathub.flatpakrepo"
FLATPAK_PACKAGES = ["flatpak", "gnome-software-plugin-flatpak"]
POWER_SERVICES = ["tlp", "auto-cpufreq"]
CODEC_PACKAGES = ["ubuntu-restricted-extras"]

GNOME_ANIMATIONS_KEY = ("org.gnome.desktop.interface", "enable-animations")

MINIMAL_STEPS = (
    "check-nvme",
    "disable-swap-partition",
    "enable-trim",
    "tune-fstab",
    "setup-zram",
    "optimize-sysctl",
)

MODES = {
    "minimal": MINIMAL_STEPS,
    "battery": ("install-tlp-cpufreq",),
    "full": MINIMAL_STEPS + (
        "basic-cleanup",
        "install-flatpak",
        "install-tlp-cpufreq",
        "disable-gnome-animations",
        "install-media-codecs",
    ),
}

MODE_LABELS = {
    "minimal": "minimal system tuning",
    "battery": "battery optimization only",
    "full": "full production tuning",
}

STEP_LABELS = {
    "check-nvme":               "NVMe detection",
    "disable-swap-partition":   "Swap partition",
    "enable-trim":              "TRIM timer",
    "tune-fstab":               "Root mount options",
    "setup-zram":               "zRAM swap",
    "optimize-sysctl":          "Kernel parameters",
    "basic-cleanup":            "Snap Firefox",
    "install-flatpak":          "Flatpak / Flathub",
    "install-tlp-cpufreq":      "TLP / auto-cpufreq",
    "disable-gnome-animations": "GNOME animations",
    "install-media-codecs":     "Media codecs",
}

STEPS = tuple(STEP_LABELS)

# Step outcomes
APPLIED = "applied"
UNCHANGED = "unchanged"
CHECKED = "checked"
SKIPPED = "skipped"


# ── Status icons ─────────────────────────────────────────────────────────────

class _I:
    PROGRESS = ">"
    OK       = "\u2705"             # white heavy check mark
    NOTE     = "\u2139\ufe0f"       # information source
    WARN     = "\u26a0\ufe0f"       # warning sign
    ERROR    = "\u274c"             # cross mark
    WRENCH   = "\U0001f527"         # wrench
    SKIP     = "\u23ed"             # next track
    DONE     = "\U0001f3c1"         # chequered flag


# ── ANSI helpers ─────────────────────────────────────────────────────────────

class _C:
    BOLD   = "\033[1m"
    DIM    = "\033[2m"
    GREEN  = "\033[32m"
    YELLOW = "\033[33m"
    RED    = "\033[31m"
    CYAN   = "\033[36m"
    RESET  = "\033[0m"

# TTY check runs once at import time against the real stdout.
if not sys.stdout.isatty():
    _C.BOLD = _C.DIM = _C.GREEN = _C.YELLOW = _C.RED = ""
    _C.CYAN = _C.RESET = ""


def _banner(title: str) -> None:
    print(f"\n{_C.BOLD}{_C.CYAN}{'─' * 60}")
    print(f"  {title}")
    print(f"{'─' * 60}{_C.RESET}")


def _section(title: str, step: int, total: int) -> None:
    tag = f"{_C.DIM}[{step}/{total}]{_C.RESET}"
    print(f"\n{_C.BOLD}{_C.CYAN}── {title}{_C.RESET}  {tag}")


def _progress(msg: str) -> None:
    print(f"{_I.PROGRESS} {msg}")


def _ok(msg: str) -> None:
    print(f"  {_C.GREEN}{_I.OK}{_C.RESET} {msg}")


def _note(msg: str) -> None:
    print(f"  {_I.NOTE}  {msg}")


def _warn(msg: str) -> None:
    print(f"  {_C.YELLOW}{_I.WARN}{_C.RESET}  {msg}")


def _error(msg: str) -> None:
    print(f"  {_C.RED}{_I.ERROR}{_C.RESET} {msg}", file=sys.stderr)


def _skip(msg: str) -> None:
    print(f"  {_C.DIM}{_I.SKIP}  {msg}{_C.RESET}")


def _dry(msg: str) -> None:
    print(f"  {_C.YELLOW}[DRY RUN]{_C.RESET} {msg}")


def _running(msg: str) -> None:
    print(f"  {_C.DIM}Running: {msg}{_C.RESET}")


def _pretty(cmd) -> str:
    return " ".join(str(c) for c in cmd)


# ── OS detection ─────────────────────────────────────────────────────────────

def detect_os() -> tuple:
    """Parse /etc/os-release → (os_id, version_id).

    Never fatal: an unexpected host only earns a warning.
    """
    info = {}
    try:
        with open(OS_RELEASE_PATH) as fh:
            for line in fh:
                line = line.strip()
                if "=" in line:
                    key, _, val = line.partition("=")
                    info[key] = val.strip('"')
    except FileNotFoundError:
        _warn(f"{OS_RELEASE_PATH} not found — cannot detect OS")
        return "unknown", "0"

    os_id = info.get("ID", "unknown")
    version_id = info.get("VERSION_ID", "0")

    try:
        version = tuple(int(p) for p in version_id.split(".")[:2])
    except ValueError:
        version = (0,)

    if os_id != "ubuntu" or version < MIN_UBUNTU:
        _warn(f"Detected {os_id} {version_id} — ubuntu-tuner targets Ubuntu 24.04 or newer")

    return os_id, version_id


def resolve_desktop_user():
    """Name of the non-root user behind sudo, or None when unknown."""
    user = os.environ.get("SUDO_USER")
    if user:
        return user
    try:
        return os.getlogin()
    except OSError:
        return None


# ── Probe parsers ────────────────────────────────────────────────────────────

def nvme_present(lsblk_output: str) -> bool:
    """True when `lsblk -d -n -o NAME,ROTA` lists a non-rotational nvme disk."""
    for line in lsblk_output.splitlines():
        parts = line.split()
        if len(parts) == 2 and parts[0].startswith("nvme") and parts[1] == "0":
            return True
    return False


def snap_installed(snap_list_output: str, name: str) -> bool:
    for line in snap_list_output.splitlines()[1:]:
        parts = line.split()
        if parts and parts[0] == name:
            return True
    return False


# ── fstab ────────────────────────────────────────────────────────────────────

class FstabEntry:
    """One active (uncommented) line of the mount table."""

    def __init__(self, index: int, line: str):
        self.index = index
        # Separators are kept so an edited line keeps its column layout.
        self.tokens = re.split(r"(\s+)", line)
        self._slots = [i for i, tok in enumerate(self.tokens)
                       if tok and not tok.isspace()]

    def field(self, n: int, default: str = "") -> str:
        if n < len(self._slots):
            return self.tokens[self._slots[n]]
        return default

    @property
    def device(self) -> str:
        return self.field(0)

    @property
    def mountpoint(self) -> str:
        return self.field(1)

    @property
    def fstype(self) -> str:
        return self.field(2)

    @property
    def options(self) -> list:
        return self.field(3, "defaults").split(",")

    @options.setter
    def options(self, options: list) -> None:
        value = ",".join(options)
        if len(self._slots) > 3:
            self.tokens[self._slots[3]] = value
        else:
            self.tokens += ["\t", value]
            self._slots.append(len(self.tokens) - 1)

    def is_swap(self) -> bool:
        return self.fstype == "swap" or self.mountpoint == "swap"

    def render(self) -> str:
        return "".join(self.tokens)


class Fstab:
    """Line-preserving, structured view of /etc/fstab."""

    def __init__(self, text: str = ""):
        self.lines = text.splitlines()

    @classmethod
    def read(cls, path: Path) -> "Fstab":
        if not path.exists():
            return cls()
        return cls(path.read_text())

    def entries(self):
        for idx, line in enumerate(self.lines):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            yield FstabEntry(idx, line)

    def swap_entries(self) -> list:
        return [e for e in self.entries() if e.is_swap()]

    def root_entry(self):
        for entry in self.entries():
            if entry.mountpoint == "/":
                return entry
        return None

    def comment_out(self, entry: FstabEntry) -> None:
        self.lines[entry.index] = "#" + self.lines[entry.index]

    def add_option(self, entry: FstabEntry, option: str) -> None:
        """Add *option* to *entry*, dropping options it overrides."""
        opts = [o for o in entry.options
                if o and o not in CONFLICTING_ATIME_OPTIONS and o != option]
        entry.options = opts + [option]
        self.lines[entry.index] = entry.render()

    def render(self) -> str:
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"


# ── sysctl.conf ──────────────────────────────────────────────────────────────

_SYSCTL_LINE = re.compile(
    r"^\s*(?P<comment>[#;]\s*)?-?(?P<key>[A-Za-z0-9_.*/-]+)\s*=\s*(?P<value>.*?)\s*$"
)


def _parse_sysctl_line(line: str):
    """Return (key, value, active) for a key=value line, else None."""
    m = _SYSCTL_LINE.match(line)
    if not m:
        return None
    key = m.group("key").replace("/", ".")
    return key, m.group("value"), m.group("comment") is None


class SysctlConf:
    """Set-or-append editor for /etc/sysctl.conf."""

    def __init__(self, text: str = ""):
        self.lines = text.splitlines()

    @classmethod
    def read(cls, path: Path) -> "SysctlConf":
        if not path.exists():
            return cls()
        return cls(path.read_text())

    def values(self) -> dict:
        """Active key → value; the last assignment wins, as for sysctl -p."""
        out = {}
        for line in self.lines:
            parsed = _parse_sysctl_line(line)
            if parsed and parsed[2]:
                out[parsed[0]] = parsed[1]
        return out

    def apply(self, settings: dict, header: str = "") -> bool:
        """Bring *settings* into the file; return True when lines changed.

        The first line naming a key (commented or not) is replaced.  Later
        active lines for the same key are dropped so they cannot override it.
        Keys not mentioned anywhere are appended below *header*.
        """
        placed = set()
        new_lines = []
        for line in self.lines:
            parsed = _parse_sysctl_line(line)
            if not parsed or parsed[0] not in settings:
                new_lines.append(line)
                continue
            key, value, active = parsed
            if key in placed:
                if not active:
                    new_lines.append(line)
                continue
            placed.add(key)
            if active and value == settings[key]:
                new_lines.append(line)
            else:
                new_lines.append(f"{key}={settings[key]}")

        missing = [k for k in settings if k not in placed]
        if missing:
            if header and header not in new_lines:
                new_lines.append(header)
            for key in missing:
                new_lines.append(f"{key}={settings[key]}")

        changed = new_lines != self.lines
        self.lines = new_lines
        return changed

    def render(self) -> str:
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"


def zram_config() -> str:
    return (
        f"ALGO={ZRAM_ALGO}\n"
        f"PERCENT={ZRAM_PERCENT}\n"
        f"PRIORITY={ZRAM_PRIORITY}\n"
    )


# ── Executors ────────────────────────────────────────────────────────────────

class CommandExecutor:
    """Runs delegated OS commands and file writes for real."""

    dry_run = False

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def _spawn(self, cmd) -> subprocess.CompletedProcess:
        return subprocess.run(cmd)

    def _execute(self, cmd) -> int:
        if not self.quiet:
            _running(_pretty(cmd))
        try:
            return self._spawn(cmd).returncode
        except FileNotFoundError:
            return 127

    def run(self, cmd) -> None:
        """Run *cmd* and require success (CalledProcessError otherwise)."""
        rc = self._execute(cmd)
        if rc != 0:
            raise subprocess.CalledProcessError(rc, cmd)

    def run_tolerant(self, cmd) -> int:
        """Run *cmd*; a non-zero exit only warns."""
        rc = self._execute(cmd)
        if rc != 0:
            _warn(f"  ↳ exited {rc}: {_pretty(cmd)} (continuing)")
        return rc

    def query(self, cmd) -> str:
        """Run a read-only probe and return stdout ("" when it fails).

        Probes also run under --dry-run; they never change the host.
        """
        try:
            r = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            return ""
        return r.stdout if r.returncode == 0 else ""

    def write_text(self, path: Path, content: str, backup: bool = False,
                   mode: int = 0o644) -> bool:
        """Write *content* to *path*; False when the file already matches.

        With *backup*, the previous content is copied to ``<path>.bak`` first.
        """
        exists = path.exists()
        if exists and path.read_text() == content:
            return False
        self._write(path, content, exists and backup, mode)
        return True

    def _write(self, path: Path, content: str, backup: bool, mode: int) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        if backup:
            shutil.copy2(path, path.with_name(path.name + ".bak"))
        # Write beside the target and rename, so an interrupt never leaves
        # a truncated file in place.
        tmp = path.with_name(path.name + ".tmp")
        with open(tmp, "w") as fh:
            fh.write(content)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
        if not self.quiet:
            _running(f"wrote {path}")


class DryRunExecutor(CommandExecutor):
    """Reports mutating actions instead of performing them."""

    dry_run = True

    def run(self, cmd) -> None:
        _dry(_pretty(cmd))

    def run_tolerant(self, cmd) -> int:
        _dry(_pretty(cmd))
        return 0

    def _write(self, path: Path, content: str, backup: bool, mode: int) -> None:
        action = "update" if path.exists() else "create"
        suffix = f" (backup to {path.name}.bak)" if backup else ""
        _dry(f"{action} file {path}{suffix}")


# ── Tuner ────────────────────────────────────────────────────────────────────

class Tuner:

    def __init__(self, mode: str, executor: CommandExecutor,
                 skip_steps=(), user=None):
        if mode not in MODES:
            raise ValueError(f"unknown mode {mode!r}")
        self.mode = mode
        self.executor = executor
        self.skip = set(skip_steps)
        self.user = user
        self.outcomes: dict = {}
        self._apt_fresh = False
        self._t0 = None
        self._step = 0
        self._total = sum(1 for s in MODES[mode] if s not in self.skip)

    @property
    def dry_run(self) -> bool:
        return self.executor.dry_run

    @property
    def steps(self) -> tuple:
        return MODES[self.mode]

    # ── helpers ───────────────────────────────────────────────────────────

    def _apt_update(self) -> None:
        self.executor.run(["apt-get", "update"])
        self._apt_fresh = True

    def _apt_install(self, *packages) -> None:
        """Install *packages*, refreshing the index once per run first."""
        if not self._apt_fresh:
            self._apt_update()
        self.executor.run(["apt-get", "install", "-y", *packages])

    def _gsettings_command(self, user: str, schema: str, key: str, value: str) -> list:
        """gsettings invocation that lands in *user*'s dconf, not root's."""
        cmd = ["gsettings", "set", schema, key, value]
        if os.geteuid() != 0:
            return cmd
        uid = pwd.getpwnam(user).pw_uid
        return ["sudo", "-u", user, "env",
                f"DBUS_SESSION_BUS_ADDRESS=unix:path=/run/user/{uid}/bus"] + cmd

    # ── entry point ───────────────────────────────────────────────────────

    def _next_step(self, step: str) -> None:
        self._step += 1
        _section(STEP_LABELS[step], self._step, self._total)

    def run(self) -> None:
        self._t0 = time.monotonic()
        dry = " (dry-run)" if self.dry_run else ""
        _banner(f"Running {MODE_LABELS[self.mode]}{dry}...")

        for step in self.steps:
            if step in self.skip:
                _skip(f"Skipping {STEP_LABELS[step]} (--skip-{step})")
                self.outcomes[step] = SKIPPED
                continue
            self._next_step(step)
            handler = getattr(self, "step_" + step.replace("-", "_"))
            self.outcomes[step] = handler()

        self._print_summary()

    def _print_summary(self) -> None:
        elapsed = time.monotonic() - self._t0
        m, s = divmod(int(elapsed), 60)
        _banner(f"{_I.DONE}  {self.mode} mode finished ({m}m {s:02d}s)")
        for step in self.steps:
            outcome = self.outcomes.get(step, SKIPPED)
            if outcome == APPLIED and self.dry_run:
                outcome = "would apply"
            print(f"  {STEP_LABELS[step]:<22} {outcome}")
        print(f"\n{_I.OK} Ubuntu tuning completed! Recommended to reboot now.")

    # ── steps ─────────────────────────────────────────────────────────────

    def step_check_nvme(self) -> str:
        _progress("Checking for NVMe drive...")
        out = self.executor.query(["lsblk", "-d", "-n", "-o", "NAME,ROTA"])
        if nvme_present(out):
            _ok("NVMe drive detected.")
        else:
            _warn("No NVMe drive found. Proceeding anyway.")
        return CHECKED

    def step_disable_swap_partition(self) -> str:
        _progress("Disabling swap partition if active...")
        fstab = Fstab.read(FSTAB_PATH)
        swaps = fstab.swap_entries()
        if not swaps:
            _note(f"No active swap entries found in {FSTAB_PATH}. Skipping.")
            return UNCHANGED

        self.executor.run_tolerant(["swapoff", "-a"])
        for entry in swaps:
            _note(f"Commenting out swap entry {entry.device}")
            fstab.comment_out(entry)
        self.executor.write_text(FSTAB_PATH, fstab.render(), backup=True)
        _ok(f"Swap partition disabled in {FSTAB_PATH} (backup created).")
        return APPLIED

    def step_enable_trim(self) -> str:
        _progress("Enabling fstrim.timer...")
        self.executor.run(["systemctl", "enable", "--now", "fstrim.timer"])
        _ok("fstrim.timer enabled.")
        return APPLIED

    def step_tune_fstab(self) -> str:
        _progress(f"Ensuring {ROOT_MOUNT_OPTION} option on root filesystem...")
        fstab = Fstab.read(FSTAB_PATH)
        root = fstab.root_entry()
        if root is None:
            _warn(f"No root filesystem entry in {FSTAB_PATH}. Skipping.")
            return UNCHANGED
        if ROOT_MOUNT_OPTION in root.options:
            _note(f"'{ROOT_MOUNT_OPTION}' already present in {FSTAB_PATH}. Skipping.")
            return UNCHANGED
        if root.fstype != "ext4":
            _warn(f"Root filesystem is {root.fstype or 'unknown'}, not ext4. Skipping.")
            return UNCHANGED

        print(f"  {_I.WRENCH} Adding '{ROOT_MOUNT_OPTION}' to root filesystem entry "
              f"in {FSTAB_PATH}...")
        fstab.add_option(root, ROOT_MOUNT_OPTION)
        self.executor.write_text(FSTAB_PATH, fstab.render(), backup=True)
        _ok(f"'{ROOT_MOUNT_OPTION}' added (backup created).")
        return APPLIED

    def step_setup_zram(self) -> str:
        _progress("Setting up zRAM...")
        self._apt_install(ZRAM_PACKAGE)
        if not self.executor.write_text(ZRAM_CONFIG_PATH, zram_config()):
            _note(f"{ZRAM_CONFIG_PATH} already up to date.")
        _ok(f"zRAM configured with {ZRAM_ALGO} compression and "
            f"{ZRAM_PERCENT}% of RAM.")
        self.executor.run_tolerant(["systemctl", "restart", "zramswap.service"])
        return APPLIED

    def step_optimize_sysctl(self) -> str:
        _progress("Tuning sysctl parameters...")
        conf = SysctlConf.read(SYSCTL_PATH)
        if conf.apply(SYSCTL_SETTINGS, header=SYSCTL_HEADER):
            self.executor.write_text(SYSCTL_PATH, conf.render(), backup=True)
            outcome = APPLIED
        else:
            _note(f"{SYSCTL_PATH} already carries the tuned values.")
            outcome = UNCHANGED
        self.executor.run(["sysctl", "-p", str(SYSCTL_PATH)])
        values = conf.values()
        _ok("sysctl tuned: " + ", ".join(f"{k}={values[k]}" for k in SYSCTL_SETTINGS))
        return outcome

    def step_basic_cleanup(self) -> str:
        _progress("Optional: removing snap Firefox if found...")
        if not snap_installed(self.executor.query(["snap", "list"]), "firefox"):
            _note("Snap Firefox not installed. Skipping.")
            return UNCHANGED

        self.executor.run_tolerant(["snap", "remove", "firefox"])
        self.executor.run(["add-apt-repository", "-y", FIREFOX_PPA])
        self.executor.write_text(FIREFOX_PIN_PATH, FIREFOX_PIN)
        self._apt_update()
        self._apt_install("firefox")
        _ok("Replaced Snap Firefox with .deb (pinned to the Mozilla PPA).")
        return APPLIED

    def step_install_flatpak(self) -> str:
        _progress("Installing Flatpak and Flathub (system-wide)...")
        self._apt_install(*FLATPAK_PACKAGES)
        self.executor.run(["flatpak", "remote-add", "--system", "--if-not-exists",
                           "flathub", FLATHUB_URL])
        _ok("Flatpak and Flathub installed (system-wide).")
        return APPLIED

    def step_install_tlp_cpufreq(self) -> str:
        _progress("Installing TLP and auto-cpufreq...")
        self._apt_install(*POWER_SERVICES)
        for svc in POWER_SERVICES:
            self.executor.run(["systemctl", "enable", "--now", svc])
        _ok("TLP and auto-cpufreq installed and enabled.")
        return APPLIED

    def step_disable_gnome_animations(self) -> str:
        user = self.user or resolve_desktop_user()
        if not user or user == "root":
            _warn("No non-root desktop user found. Skipping GNOME animations.")
            return UNCHANGED

        _progress(f"Disabling GNOME animations for user {user}...")
        schema, key = GNOME_ANIMATIONS_KEY
        try:
            cmd = self._gsettings_command(user, schema, key, "false")
        except KeyError:
            _warn(f"User {user} does not exist. Skipping GNOME animations.")
            return UNCHANGED
        self.executor.run(cmd)
        _ok("GNOME animations disabled.")
        return APPLIED

    def step_install_media_codecs(self) -> str:
        _progress("Installing media codecs...")
        self._apt_install(*CODEC_PACKAGES)
        _ok("Media codecs installed.")
        return APPLIED


# ── CLI ──────────────────────────────────────────────────────────────────────

class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1, not argparse's default 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        _error(message)
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="ubuntu-tuner",
        description="Apply laptop tuning to an Ubuntu 24.04+ system.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  sudo ./ubuntu_tuner.py --minimal              # swap, TRIM, fstab, zRAM, sysctl
  sudo ./ubuntu_tuner.py --battery              # TLP + auto-cpufreq only
  sudo ./ubuntu_tuner.py --full                 # minimal + apps, codecs, GNOME
  sudo ./ubuntu_tuner.py --dry-run --full       # preview without changes
  sudo ./ubuntu_tuner.py --full --skip-basic-cleanup
""",
    )
    p.add_argument(
        "--dry-run", action="store_true",
        help="print commands and file edits without performing them",
    )
    modes = p.add_mutually_exclusive_group(required=True)
    for mode in MODES:
        modes.add_argument(
            f"--{mode}", dest="mode", action="store_const", const=mode,
            help=f"run {MODE_LABELS[mode]}",
        )
    for step in STEPS:
        p.add_argument(
            f"--skip-{step}",
            dest=f"skip_{step.replace('-', '_')}",
            action="store_true",
            help=f"skip the {step} step",
        )
    p.add_argument(
        "--user", metavar="NAME",
        help="desktop user for GNOME settings (default: $SUDO_USER, then login name)",
    )
    p.add_argument(
        "-q", "--quiet", action="store_true",
        help="suppress per-command output; [DRY RUN] lines, warnings and "
             "errors still print",
    )
    return p


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if os.geteuid() != 0:
        _error("ubuntu-tuner must run as root (try: sudo ./ubuntu_tuner.py --minimal)")
        sys.exit(1)

    detect_os()

    skipped = [
        step for step in STEPS
        if getattr(args, f"skip_{step.replace('-', '_')}", False)
    ]
    executor_cls = DryRunExecutor if args.dry_run else CommandExecutor
    tuner = Tuner(
        args.mode,
        executor_cls(quiet=args.quiet),
        skip_steps=skipped,
        user=args.user,
    )

    try:
        tuner.run()
    except subprocess.CalledProcessError as exc:
        # A command killed by signal N reports -N; exit 128+N like a shell.
        status = 128 - exc.returncode if exc.returncode < 0 else exc.returncode
        _error(f"Command failed (exit {status}): {_pretty(exc.cmd)}")
        sys.exit(status)
    except OSError as exc:
        _error(f"File operation failed: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()

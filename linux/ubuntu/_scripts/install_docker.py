#!/usr/bin/env python3
"""
Docker Engine Installer (Unattended)
------------------------------------

Installs Docker Engine and its plugins from Docker's upstream APT repository on a
Debian/Ubuntu-family host with zero user interaction.

Features:
  • Detects package architecture, distribution codename and the invoking user
  • Falls back through known-good repository codenames when the host's is missing
  • Removes conflicting distro packages before installing
  • Registers the Docker APT repository with its dearmored signing key
  • Installs docker-ce, the CLI, containerd and the buildx/compose plugins
  • Enables the docker service and grants the invoking user docker group access
  • Fail-fast error handling with a per-step status report

Run with sudo, or as a user that may use sudo.
Version: 1.0.0
"""

import argparse
import datetime
import getpass
import gzip
import logging
import os
import shlex
import shutil
import signal
import subprocess
import sys
import tempfile
import time
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

# Third-party imports
import pyfiglet
import requests
from rich.box import ROUNDED
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text
from rich.theme import Theme


# ----------------------------------------------------------------
# Configuration & Constants
# ----------------------------------------------------------------
@dataclass
class AppConfig:
    """Global application configuration."""

    # Application info
    VERSION: str = "1.0.0"
    APP_NAME: str = "Docker Installer"
    APP_SUBTITLE: str = "Docker Engine Setup for Debian/Ubuntu"

    # Paths and files
    LOG_FILE: str = "/var/log/install_docker.log"
    MAX_LOG_SIZE: int = 10 * 1024 * 1024  # 10MB
    OS_RELEASE_FILE: str = "/etc/os-release"
    KEYRING_DIR: str = "/etc/apt/keyrings"
    KEYRING_PATH: str = "/etc/apt/keyrings/docker.gpg"
    SOURCES_LIST_PATH: str = "/etc/apt/sources.list.d/docker.list"

    # Docker repository
    DOCKER_REPO_URL: str = "https://download.docker.com/linux/ubuntu"
    DOCKER_GPG_URL: str = "https://download.docker.com/linux/ubuntu/gpg"
    DOCKER_CHANNEL: str = "stable"
    DOCKER_SERVICE: str = "docker"
    DOCKER_GROUP: str = "docker"
    SUPERUSER: str = "root"

    # Operation settings
    COMMAND_TIMEOUT: int = 1800  # seconds, apt can be slow on first install
    HTTP_TIMEOUT: int = 10
    HTTP_RETRIES: int = 3
    RETRY_DELAY: float = 1.0

    # Terminal
    TERM_WIDTH: int = shutil.get_terminal_size().columns

    @classmethod
    def update_terminal_size(cls) -> None:
        """Update terminal width dynamically."""
        try:
            cls.TERM_WIDTH = shutil.get_terminal_size().columns
        except Exception:
            cls.TERM_WIDTH = 80


# Codenames tried after the host's own, in order
FALLBACK_CODENAMES: Tuple[str, ...] = ("noble", "jammy", "focal")

PREREQUISITE_PACKAGES: Tuple[str, ...] = (
    "ca-certificates",
    "curl",
    "gnupg",
    "lsb-release",
)

# Distro packages that clash with docker-ce
CONFLICTING_PACKAGES: Tuple[str, ...] = (
    "docker.io",
    "docker-doc",
    "docker-compose",
    "podman-docker",
    "moby-engine",
    "moby-cli",
    "containerd",
    "runc",
)

DOCKER_PACKAGES: Tuple[str, ...] = (
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
)

# Keep existing config files and never stop for a dpkg prompt
APT_OPTS: Tuple[str, ...] = (
    "-y",
    "-q",
    "-o",
    "Dpkg::Options::=--force-confdef",
    "-o",
    "Dpkg::Options::=--force-confold",
)
# Avoid "deferred due to phasing"
PHASE_OPTS: Tuple[str, ...] = ("-o", "APT::Get::Always-Include-Phased-Updates=true")

NONINTERACTIVE_ENV: Dict[str, str] = {
    "DEBIAN_FRONTEND": "noninteractive",
    "NEEDRESTART_MODE": "a",  # auto-restart services
    "NEEDRESTART_SUSPEND": "1",  # silence needrestart scan output
}


# ----------------------------------------------------------------
# Nord-Themed Colors and Rich Console
# ----------------------------------------------------------------
class NordColors:
    """Nord color palette used by the console theme."""

    POLAR_NIGHT_4: str = "#4C566A"
    SNOW_STORM_1: str = "#D8DEE9"
    SNOW_STORM_2: str = "#E5E9F0"
    FROST_1: str = "#8FBCBB"
    FROST_2: str = "#88C0D0"
    FROST_3: str = "#81A1C1"
    FROST_4: str = "#5E81AC"
    RED: str = "#BF616A"
    YELLOW: str = "#EBCB8B"
    GREEN: str = "#A3BE8C"

    @classmethod
    def frost(cls) -> List[str]:
        return [cls.FROST_1, cls.FROST_2, cls.FROST_3, cls.FROST_4]


NORD_THEME = Theme(
    {
        "info": NordColors.FROST_2,
        "warning": f"bold {NordColors.YELLOW}",
        "error": f"bold {NordColors.RED}",
        "success": f"bold {NordColors.GREEN}",
        "section": f"{NordColors.FROST_3} bold",
        "step": NordColors.FROST_2,
        "command": f"bold {NordColors.FROST_4}",
        "path": f"italic {NordColors.FROST_1}",
    }
)

DISABLE_COLORS = os.environ.get("DISABLE_COLORS", "false").lower() == "true"

console = Console(theme=NORD_THEME, no_color=DISABLE_COLORS)
err_console = Console(theme=NORD_THEME, no_color=DISABLE_COLORS, stderr=True)

logger = logging.getLogger("install_docker")


# ----------------------------------------------------------------
# Custom Exceptions
# ----------------------------------------------------------------
class SetupError(Exception):
    """Base exception for installer errors."""

    pass


class DependencyError(SetupError):
    """Raised when the host lacks the Debian package tooling."""

    pass


class ExecutionError(SetupError):
    """Raised when command execution fails."""

    pass


class NetworkError(SetupError):
    """Raised when a download or repository probe fails."""

    pass


# ----------------------------------------------------------------
# Logging and Banner Helpers
# ----------------------------------------------------------------
def _rotate_log(log_file: str) -> None:
    if not (
        os.path.exists(log_file) and os.path.getsize(log_file) > AppConfig.MAX_LOG_SIZE
    ):
        return
    ts = datetime.datetime.now().strftime("%Y%m%d%H%M%S")
    rotated = f"{log_file}.{ts}.gz"
    try:
        with open(log_file, "rb") as fin, gzip.open(rotated, "wb") as fout:
            shutil.copyfileobj(fin, fout)
        open(log_file, "w").close()
        console.print(f"Rotated log file to [path]{rotated}[/path]")
    except OSError as e:
        err_console.print(f"[warning]Failed to rotate log file: {e}[/warning]")


def setup_logging(log_file: str = AppConfig.LOG_FILE, level: str = "INFO") -> str:
    """
    Configure logging with a file handler and, at DEBUG, a Rich console handler.

    Falls back to the temp directory when the requested log file is not
    writable, which is the normal case when running without sudo.

    Args:
        log_file: Requested log file path
        level: Console log level name (only DEBUG adds a console handler)

    Returns:
        The log file path actually in use.
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    try:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        _rotate_log(log_file)
        file_handler = logging.FileHandler(log_file)
    except OSError:
        log_file = os.path.join(tempfile.gettempdir(), os.path.basename(log_file))
        _rotate_log(log_file)
        file_handler = logging.FileHandler(log_file)

    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    logger.addHandler(file_handler)

    if level.upper() == "DEBUG":
        logger.addHandler(
            RichHandler(rich_tracebacks=True, markup=False, console=err_console)
        )

    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.info("Logging initialized: %s", log_file)
    return log_file


def create_header() -> Panel:
    """
    Create an ASCII art header using Pyfiglet with a Nord-themed gradient.

    Returns:
        Panel: A Rich Panel containing the styled header.
    """
    fonts = ["slant", "small", "standard"]
    ascii_art = ""

    AppConfig.update_terminal_size()
    adjusted_width = min(AppConfig.TERM_WIDTH - 10, 80)

    for font in fonts:
        try:
            ascii_art = pyfiglet.Figlet(font=font, width=adjusted_width).renderText(
                AppConfig.APP_NAME
            )
            if ascii_art.strip():
                break
        except Exception as e:
            logger.debug(f"Font {font} failed: {e}")

    if not ascii_art.strip():
        ascii_art = f"=== {AppConfig.APP_NAME} ===\n"

    header = Text()
    colors = NordColors.frost()
    lines = [line for line in ascii_art.splitlines() if line.strip()]
    for i, line in enumerate(lines):
        header.append(line + "\n", style=f"bold {colors[i % len(colors)]}")

    return Panel(
        header,
        border_style=Style(color=NordColors.FROST_1),
        padding=(1, 2),
        box=ROUNDED,
        title=f"[bold {NordColors.SNOW_STORM_2}]v{AppConfig.VERSION}[/]",
        title_align="right",
        subtitle=f"[bold {NordColors.SNOW_STORM_1}]{AppConfig.APP_SUBTITLE}[/]",
        subtitle_align="center",
    )


def print_message(
    text: str, style: str = "info", prefix: str = "[INFO]", err: bool = False
) -> None:
    """
    Print a prefixed, styled line to stdout (or stderr when err is set).

    The prefix is printed literally, never parsed as console markup.
    """
    target = err_console if err else console
    target.print(Text(f"{prefix} {text}", style=style))


def print_info(text: str) -> None:
    print_message(text)
    logger.info(text)


def print_success(text: str) -> None:
    print_message(text, "success")
    logger.info(f"SUCCESS: {text}")


def print_warning(text: str) -> None:
    print_message(text, "warning", "[WARN]", err=True)
    logger.warning(text)


def print_error(text: str) -> None:
    print_message(text, "error", "[ERROR]", err=True)
    logger.error(text)


def print_section(title: str) -> None:
    console.print()
    console.print(Text(f"== {title} ==", style="section"))
    console.print(Text("─" * min(60, AppConfig.TERM_WIDTH), style=NordColors.FROST_3))
    logger.info(f"--- {title} ---")


# ----------------------------------------------------------------
# Command Execution Helpers
# ----------------------------------------------------------------
def run_command(
    cmd: Sequence[str],
    env: Optional[Mapping[str, str]] = None,
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[int] = AppConfig.COMMAND_TIMEOUT,
    input_text: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """
    Execute a system command and log it together with its output.

    Args:
        cmd: Command and arguments
        env: Extra environment variables layered over the current environment
        check: Whether to raise ExecutionError on a non-zero exit
        capture_output: Whether to capture stdout/stderr
        timeout: Command timeout in seconds
        input_text: Text fed to the command's stdin

    Returns:
        subprocess.CompletedProcess object. A missing executable with
        check=False yields returncode 127.

    Raises:
        ExecutionError: If the command fails, is missing or times out and check is set
    """
    cmd = list(cmd)
    cmd_str = shlex.join(cmd)
    logger.debug(f"Executing: {cmd_str}")

    full_env = os.environ.copy()
    if env:
        full_env.update(env)

    try:
        result = subprocess.run(
            cmd,
            env=full_env,
            input=input_text,
            text=True,
            capture_output=capture_output,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        error_msg = f"Command not found: {cmd[0]}"
        if check:
            logger.error(error_msg)
            raise ExecutionError(error_msg) from e
        logger.debug(error_msg)
        return subprocess.CompletedProcess(cmd, 127, "", str(e))
    except subprocess.TimeoutExpired as e:
        error_msg = f"Command timed out after {timeout} seconds: {cmd_str}"
        logger.error(error_msg)
        raise ExecutionError(error_msg) from e

    if result.stdout:
        logger.debug(f"Output: {result.stdout.strip()}")
    if result.stderr:
        logger.debug(f"Stderr: {result.stderr.strip()}")

    if check and result.returncode != 0:
        error_msg = f"Command failed (code {result.returncode}): {cmd_str}"
        if result.stderr:
            error_msg += f"\nError: {result.stderr.strip()}"
        logger.error(error_msg)
        raise ExecutionError(error_msg)

    return result


# ----------------------------------------------------------------
# Utility Functions
# ----------------------------------------------------------------
class Utils:
    """Utility methods for common operations."""

    @staticmethod
    def command_exists(cmd: str) -> bool:
        return shutil.which(cmd) is not None

    @staticmethod
    def is_root() -> bool:
        return os.geteuid() == 0

    @staticmethod
    def retry_operation(
        operation: Callable,
        max_attempts: int = AppConfig.HTTP_RETRIES,
        retry_delay: float = AppConfig.RETRY_DELAY,
        operation_name: str = "Operation",
        retry_on: Tuple[type, ...] = (Exception,),
        retry_if: Optional[Callable[[Exception], bool]] = None,
    ) -> Any:
        """
        Retry an operation a bounded number of times with a fixed delay.

        Only exceptions listed in retry_on, and accepted by retry_if when
        given, are retried; anything else propagates on the first attempt.

        Args:
            operation: Function to retry
            max_attempts: Maximum number of attempts
            retry_delay: Delay between retries in seconds
            operation_name: Name of the operation for logging
            retry_on: Exception types that trigger a retry
            retry_if: Optional predicate narrowing which exceptions are retried

        Returns:
            Result of the operation if successful

        Raises:
            Exception: The last exception raised by the operation after all retries
        """
        attempt = 0
        while True:
            try:
                return operation()
            except retry_on as e:
                if retry_if is not None and not retry_if(e):
                    raise
                attempt += 1
                if attempt >= max_attempts:
                    logger.debug(
                        f"{operation_name} failed after {max_attempts} attempts: {e}"
                    )
                    raise

                logger.debug(
                    f"{operation_name} failed (attempt {attempt}/{max_attempts}): {e}. "
                    f"Retrying in {retry_delay:.1f}s..."
                )
                time.sleep(retry_delay)


# ----------------------------------------------------------------
# HTTP Helpers
# ----------------------------------------------------------------
# Statuses curl --retry treats as transient
TRANSIENT_HTTP_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


def is_transient_http_error(error: Exception) -> bool:
    """True for connection failures, timeouts and retryable HTTP statuses."""
    if isinstance(error, (requests.ConnectionError, requests.Timeout)):
        return True
    response = getattr(error, "response", None)
    return (
        isinstance(error, requests.HTTPError)
        and response is not None
        and response.status_code in TRANSIENT_HTTP_STATUSES
    )


def fetch_url(url: str) -> str:
    """
    Download a small text resource, retrying transient network failures.

    Raises:
        NetworkError: If the download does not succeed
    """

    def get() -> str:
        response = requests.get(url, timeout=AppConfig.HTTP_TIMEOUT)
        response.raise_for_status()
        return response.text

    try:
        return Utils.retry_operation(
            get,
            operation_name=f"GET {url}",
            retry_on=(requests.RequestException,),
            retry_if=is_transient_http_error,
        )
    except requests.RequestException as e:
        raise NetworkError(f"Failed to download {url}: {e}") from e


def repo_url_available(url: str) -> bool:
    """Return True if url answers a GET with a success status."""

    def probe() -> None:
        with requests.get(url, timeout=AppConfig.HTTP_TIMEOUT, stream=True) as response:
            response.raise_for_status()

    try:
        Utils.retry_operation(
            probe,
            operation_name=f"Probe {url}",
            retry_on=(requests.RequestException,),
            retry_if=is_transient_http_error,
        )
        return True
    except requests.RequestException as e:
        logger.debug(f"Repository probe failed for {url}: {e}")
        return False


# ----------------------------------------------------------------
# Host Environment Probing
# ----------------------------------------------------------------
@dataclass
class HostEnvironment:
    """What the installer learned about the host before touching it."""

    architecture: str
    codename: str
    os_id: str
    os_id_like: str
    target_user: str
    use_sudo: bool

    @property
    def is_debian_family(self) -> bool:
        families = {self.os_id, *self.os_id_like.split()}
        return bool(families & {"debian", "ubuntu"})


def read_os_release(path: str = AppConfig.OS_RELEASE_FILE) -> Dict[str, str]:
    """
    Parse an os-release file into a dict, unquoting values.

    A missing or unreadable file yields an empty dict.
    """
    info: Dict[str, str] = {}
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                try:
                    info[key] = " ".join(shlex.split(value))
                except ValueError:
                    info[key] = value.strip("\"'")
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
    return info


def detect_architecture() -> str:
    result = run_command(["dpkg", "--print-architecture"], check=False)
    arch = result.stdout.strip() if result.returncode == 0 else ""
    return arch or "unknown"


def resolve_target_user(env: Optional[Mapping[str, str]] = None) -> str:
    """
    Resolve the account that should get docker group access.

    SUDO_USER wins so that `sudo ./install_docker.py` targets the real user
    rather than root.
    """
    env = os.environ if env is None else env
    user = env.get("SUDO_USER") or env.get("USER")
    if user:
        return user
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def probe_host() -> HostEnvironment:
    os_info = read_os_release()
    return HostEnvironment(
        architecture=detect_architecture(),
        codename=os_info.get("VERSION_CODENAME", ""),
        os_id=os_info.get("ID", ""),
        os_id_like=os_info.get("ID_LIKE", ""),
        target_user=resolve_target_user(),
        use_sudo=not Utils.is_root(),
    )


def candidate_codenames(detected: str) -> List[str]:
    """The detected codename followed by the fallbacks, blanks and repeats dropped."""
    candidates: List[str] = []
    for codename in (detected, *FALLBACK_CODENAMES):
        if codename and codename not in candidates:
            candidates.append(codename)
    return candidates


def choose_repo_codename(detected: str) -> str:
    """
    Pick the first candidate codename that has a Docker repository.

    Raises:
        NetworkError: If no candidate repository responds
    """
    for codename in candidate_codenames(detected):
        url = f"{AppConfig.DOCKER_REPO_URL}/dists/{codename}/Release"
        if repo_url_available(url):
            return codename
        logger.info(f"No Docker repository for '{codename}', trying next candidate")
    raise NetworkError("No suitable Docker repo codename found.")


# ----------------------------------------------------------------
# Installer
# ----------------------------------------------------------------
class DockerInstaller:
    """Runs the installation steps in order, stopping at the first failure."""

    def __init__(self, host: Optional[HostEnvironment] = None) -> None:
        self.host = host
        self.start_time = time.time()
        self.log_file = AppConfig.LOG_FILE
        self.warnings: List[str] = []
        self.status: Dict[str, Dict[str, str]] = {
            key: {"status": "pending", "message": ""} for key, _, _ in self.steps()
        }

    def steps(self) -> List[Tuple[str, str, Callable[[], None]]]:
        return [
            ("preflight", "Probing environment", self.probe_environment),
            (
                "noninteractive",
                "Configuring non-interactive package management",
                self.configure_noninteractive,
            ),
            ("prerequisites", "Installing prerequisites", self.install_prerequisites),
            (
                "conflicts",
                "Removing conflicting distro packages",
                self.remove_conflicting_packages,
            ),
            (
                "repository",
                "Configuring Docker APT repository",
                self.configure_repository,
            ),
            (
                "packages",
                "Installing Docker Engine and plugins",
                self.install_docker_packages,
            ),
            ("service", "Enabling and starting Docker service", self.enable_service),
            ("user_access", "Granting docker group access", self.grant_user_access),
            ("verify", "Verifying installation", self.verify_installation),
        ]

    # -- command helpers ------------------------------------------------

    def privileged(self, cmd: Sequence[str]) -> List[str]:
        """Prefix cmd with sudo when not root, keeping the non-interactive env."""
        if self.host is None or not self.host.use_sudo:
            return list(cmd)
        return ["sudo", f"--preserve-env={','.join(NONINTERACTIVE_ENV)}", *cmd]

    def needs_sudo(self) -> bool:
        if self.host is not None:
            return self.host.use_sudo
        return not Utils.is_root()

    def authenticate_sudo(self) -> None:
        """Cache sudo credentials up front when not running as root."""
        if self.needs_sudo():
            run_command(["sudo", "-v"], capture_output=False)

    def apt_get(self, *args: str) -> subprocess.CompletedProcess:
        return run_command(self.privileged(["apt-get", *args]), env=NONINTERACTIVE_ENV)

    def warn(self, text: str) -> None:
        self.warnings.append(text)
        print_warning(text)

    # -- steps ----------------------------------------------------------

    def probe_environment(self) -> None:
        for tool in ("apt-get", "dpkg"):
            if not Utils.command_exists(tool):
                raise DependencyError(
                    f"'{tool}' not found; a Debian-family system is required."
                )

        if self.host is None:
            self.host = probe_host()
        host = self.host

        if not host.is_debian_family:
            self.warn(
                f"Unrecognized distribution '{host.os_id or 'unknown'}'; "
                "continuing with the Ubuntu repository."
            )
        print_info(f"Architecture: {host.architecture}")
        print_info(f"Detected codename: {host.codename or '(none)'}")
        print_info(f"Target user: {host.target_user or '(unknown)'}")

    def configure_noninteractive(self) -> None:
        os.environ.update(NONINTERACTIVE_ENV)
        for key, value in NONINTERACTIVE_ENV.items():
            logger.debug(f"{key}={value}")
        print_info("apt/dpkg/needrestart set to non-interactive mode.")

    def install_prerequisites(self) -> None:
        print_info("Installing prerequisites...")
        self.apt_get("update", "-y", "-q")
        self.apt_get("install", *APT_OPTS, *PREREQUISITE_PACKAGES)

    def remove_conflicting_packages(self) -> None:
        print_info("Removing conflicting distro packages (if any)...")
        for package in CONFLICTING_PACKAGES:
            if run_command(["dpkg", "-s", package], check=False).returncode == 0:
                print_info(f"Removing conflicting package: {package}")
                self.apt_get("remove", *APT_OPTS, package)
            else:
                print_info(f"Not installed (skipping): {package}")

    def install_signing_key(self) -> None:
        run_command(self.privileged(["install", "-m", "0755", "-d", AppConfig.KEYRING_DIR]))
        if os.path.isfile(AppConfig.KEYRING_PATH):
            print_info(f"Signing key already present: {AppConfig.KEYRING_PATH}")
            return

        print_info(f"Fetching Docker signing key from {AppConfig.DOCKER_GPG_URL}")
        key = fetch_url(AppConfig.DOCKER_GPG_URL)
        run_command(
            self.privileged(["gpg", "--batch", "--dearmor", "-o", AppConfig.KEYRING_PATH]),
            input_text=key,
        )
        run_command(self.privileged(["chmod", "a+r", AppConfig.KEYRING_PATH]))

    def repository_line(self, codename: str) -> str:
        return (
            f"deb [arch={self.host.architecture} signed-by={AppConfig.KEYRING_PATH}] "
            f"{AppConfig.DOCKER_REPO_URL} {codename} {AppConfig.DOCKER_CHANNEL}"
        )

    def configure_repository(self) -> None:
        self.install_signing_key()

        codename = choose_repo_codename(self.host.codename)
        print_info(f"Using Docker repo codename: {codename}")

        run_command(
            self.privileged(["tee", AppConfig.SOURCES_LIST_PATH]),
            input_text=self.repository_line(codename) + "\n",
        )
        logger.info(f"Wrote {AppConfig.SOURCES_LIST_PATH}")

    def install_docker_packages(self) -> None:
        print_info("Updating APT cache for Docker repo...")
        self.apt_get("update", "-y", "-q")
        print_info("Installing Docker Engine and plugins...")
        self.apt_get("install", *APT_OPTS, *PHASE_OPTS, *DOCKER_PACKAGES)

    def enable_service(self) -> None:
        run_command(
            self.privileged(["systemctl", "enable", "--now", AppConfig.DOCKER_SERVICE])
        )

        # the package normally creates the group
        group = AppConfig.DOCKER_GROUP
        if run_command(["getent", "group", group], check=False).returncode == 0:
            return
        result = run_command(self.privileged(["groupadd", group]), check=False)
        if result.returncode != 0:
            self.warn(f"Could not create '{group}' group.")

    def grant_user_access(self) -> None:
        user = self.host.target_user
        group = AppConfig.DOCKER_GROUP

        if not user:
            self.warn("Could not determine the invoking user; skipping group setup.")
            return
        if user == AppConfig.SUPERUSER:
            logger.info(f"Target user is {user}; no group change needed.")
            return

        groups = run_command(["id", "-nG", user], check=False)
        if groups.returncode == 0 and group in groups.stdout.split():
            print_info(f"User '{user}' already in '{group}' group.")
            return

        print_info(f"Adding '{user}' to '{group}' group...")
        result = run_command(self.privileged(["usermod", "-aG", group, user]), check=False)
        if result.returncode != 0:
            self.warn(f"Could not add user to {group} group.")

    def verify_installation(self) -> None:
        # group and PATH changes may not be visible to this session yet
        print_info("Docker versions:")
        checks = [
            (["docker", "--version"], "docker CLI not yet in current shell PATH."),
            (
                ["docker", "compose", "version"],
                "compose plugin not yet visible in current shell.",
            ),
        ]
        for cmd, warning in checks:
            result = run_command(cmd, check=False)
            if result.returncode == 0:
                print_info(result.stdout.strip())
            else:
                self.warn(warning)

    # -- orchestration --------------------------------------------------

    def run_step(self, key: str, desc: str, func: Callable[[], None]) -> None:
        """Run one step, tracking its status and elapsed time."""
        self.status[key] = {"status": "in_progress", "message": f"{desc} in progress..."}
        print_section(desc)
        start = time.time()

        spinner = (
            console.status(f"[step]{desc}...", spinner="dots")
            if console.is_terminal
            else nullcontext()
        )
        try:
            with spinner:
                func()
        except Exception as e:
            elapsed = time.time() - start
            self.status[key] = {
                "status": "failed",
                "message": f"{desc} failed after {elapsed:.2f}s: {e}",
            }
            raise

        elapsed = time.time() - start
        self.status[key] = {
            "status": "success",
            "message": f"{desc} succeeded in {elapsed:.2f}s.",
        }
        logger.info(f"{desc} completed in {elapsed:.2f}s")

    def status_report(self) -> None:
        """Display a table reporting the status of every step."""
        icons = {"success": "✓", "failed": "✗", "pending": "?", "in_progress": "⋯"}
        styles = {"success": "success", "failed": "error", "in_progress": "warning"}

        table = Table(
            show_header=True,
            header_style=f"bold {NordColors.FROST_1}",
            border_style=NordColors.FROST_3,
            box=ROUNDED,
            title=f"[bold {NordColors.FROST_2}]Docker Installation Status[/]",
            title_justify="center",
        )
        table.add_column("Step", style=f"bold {NordColors.FROST_2}")
        table.add_column("Status", justify="center")
        table.add_column("Message", style=NordColors.SNOW_STORM_1)

        for key, data in self.status.items():
            st = data["status"]
            table.add_row(
                key.replace("_", " ").title(),
                Text(f"{icons.get(st, '?')} {st.upper()}", style=styles.get(st, "step")),
                data["message"],
            )
        console.print(table)

    def run(self) -> int:
        """
        Run every installation step.

        Returns:
            int: Exit code (0 for success, 1 for failure)
        """
        now = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        console.print(create_header())
        print_info(f"Starting {AppConfig.APP_NAME} v{AppConfig.VERSION} at {now}")

        # sudo may prompt for a password; do it before any spinner is drawn
        try:
            self.authenticate_sudo()
        except SetupError as e:
            print_error(f"sudo authentication failed: {e}")
            return 1

        for key, desc, func in self.steps():
            try:
                self.run_step(key, desc, func)
            except SetupError as e:
                print_error(f"{desc} failed: {e}")
                self.status_report()
                return 1

        self.status_report()
        minutes, seconds = divmod(time.time() - self.start_time, 60)
        console.print(
            Panel(
                Text.from_markup(
                    f"[bold {NordColors.FROST_3}]Total Duration:[/] {int(minutes)}m {int(seconds)}s\n"
                    f"[bold {NordColors.FROST_3}]Warnings:[/] {len(self.warnings)}\n"
                    f"[bold {NordColors.FROST_3}]Log File:[/] {self.log_file}"
                ),
                border_style=Style(color=NordColors.FROST_1),
                box=ROUNDED,
                padding=(1, 2),
                title=f"[bold {NordColors.SNOW_STORM_2}]Docker Installer[/]",
            )
        )
        print_success("Docker installation complete.")
        print_info(
            f"Tip: run 'newgrp {AppConfig.DOCKER_GROUP}' or re-login to use docker without sudo."
        )
        return 0


# ----------------------------------------------------------------
# Signal Handling
# ----------------------------------------------------------------
def signal_handler(signum: int, frame: Optional[Any]) -> None:
    """Abort the run on a termination signal; host changes are left as they are."""
    sig_name = f"signal {signum}"
    try:
        sig_name = signal.Signals(signum).name
    except ValueError:
        pass

    console.print()
    print_warning(f"Process interrupted by {sig_name}")
    sys.exit(128 + signum)


def install_signal_handlers() -> None:
    for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGHUP):
        try:
            signal.signal(sig, signal_handler)
        except (AttributeError, ValueError):
            pass


# ----------------------------------------------------------------
# Main Entry Point
# ----------------------------------------------------------------
def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Install Docker Engine and plugins from Docker's APT repository. "
            "Set LOG_LEVEL=DEBUG for verbose output, DISABLE_COLORS=true for "
            "plain output and DOCKER_INSTALL_LOG to move the log file."
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {AppConfig.VERSION}"
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the Docker installer.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    parse_args(argv)
    install_signal_handlers()

    try:
        log_file = setup_logging(
            os.environ.get("DOCKER_INSTALL_LOG", AppConfig.LOG_FILE),
            os.environ.get("LOG_LEVEL", "INFO"),
        )
        installer = DockerInstaller()
        installer.log_file = log_file
        return installer.run()
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Unhandled exception")
        return 1


if __name__ == "__main__":
    sys.exit(main())

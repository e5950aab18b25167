"""
Swift / Xcode toolchain infrastructure for doccpages.

Provides a clean abstraction over the external build tools
(swift, xcodebuild, xcrun, docc). All tool invocations go through
this client, making them:
- Easy to mock for testing
- Consistent in error handling (stop on first error)
- Isolated from pipeline logic
"""

import json
import os
import plistlib
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
import logging

from packaging.version import InvalidVersion, Version

from ..exit_codes import BuildError, ToolchainError

logger = logging.getLogger(__name__)

XCODE_APP_PATTERN = re.compile(r'^Xcode(?:[_-](?P<version>[0-9][0-9A-Za-z.\-]*))?\.app$')
SWIFT_VERSION_PATTERN = re.compile(r'Swift version (\S+)')


@dataclass
class CommandResult:
    """Result of running an external tool."""
    args: List[str]
    stdout: str
    stderr: str
    returncode: int

    @property
    def command(self) -> str:
        return ' '.join(self.args)


def parse_scheme_listing(output: str) -> List[str]:
    """
    Extract scheme names from ``xcodebuild -list`` output.

    Names are the indented lines following the ``Schemes:`` header,
    up to the next blank line, in the order xcodebuild reports them.
    """
    schemes: List[str] = []
    in_schemes = False
    for line in output.splitlines():
        stripped = line.strip()
        if not in_schemes:
            if stripped == 'Schemes:':
                in_schemes = True
            continue
        if not stripped:
            break
        schemes.append(stripped)
    return schemes


def parse_swift_version(output: str) -> Optional[str]:
    """Compiler version from ``swift --version``, e.g. ``5.9.2``."""
    lines = output.strip().splitlines()
    if not lines:
        return None
    match = SWIFT_VERSION_PATTERN.search(lines[0])
    if match:
        return match.group(1)
    parts = lines[0].split()
    return parts[2] if len(parts) >= 3 else None


def _parse_version(value: str) -> Optional[Version]:
    try:
        return Version(value)
    except InvalidVersion:
        return None


class ToolchainClient:
    """
    Abstraction over the Swift and Xcode command-line tools.

    Example:
        toolchain = ToolchainClient(config)
        schemes = toolchain.list_schemes(Path("App.xcodeproj"))
        toolchain.docbuild(Path("App.xcodeproj"), schemes[0], Path("/tmp/docbuild"))
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        developer_dir: Optional[Path] = None,
        timeout: Optional[int] = None
    ):
        """
        Initialize ToolchainClient.

        Args:
            config: The ``toolchain`` config section
            developer_dir: Xcode developer dir passed as DEVELOPER_DIR
            timeout: Per-command timeout in seconds
        """
        config = config or {}
        self.swift = config.get('swift', 'swift')
        self.xcodebuild = config.get('xcodebuild', 'xcodebuild')
        self.xcrun = config.get('xcrun', 'xcrun')
        self.applications_dir = Path(config.get('applications_dir', '/Applications'))
        self.timeout = timeout or config.get('timeout_seconds', 3600)
        self.developer_dir = developer_dir
        self._docc_path: Optional[str] = None

    def _env(self) -> Optional[Dict[str, str]]:
        if self.developer_dir is None:
            return None
        env = dict(os.environ)
        env['DEVELOPER_DIR'] = str(self.developer_dir)
        return env

    def _run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        check: bool = True
    ) -> CommandResult:
        """
        Run a tool.

        Args:
            args: Command and arguments (no shell)
            cwd: Working directory
            check: Raise BuildError on non-zero exit

        Returns:
            CommandResult with captured output
        """
        args = [str(a) for a in args]
        cmd_str = ' '.join(args)
        logger.debug(f"Running command in '{cwd or '.'}': {cmd_str}")

        try:
            proc = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self._env(),
            )
        except FileNotFoundError as e:
            raise ToolchainError(f"Tool not found: {args[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise BuildError(
                f"Command timed out after {self.timeout}s: {cmd_str}", command=cmd_str
            ) from e

        result = CommandResult(
            args=args,
            stdout=proc.stdout or '',
            stderr=proc.stderr or '',
            returncode=proc.returncode,
        )

        if result.stdout.strip():
            logger.debug(result.stdout.strip())

        if result.returncode != 0 and check:
            if result.stderr.strip():
                logger.error(result.stderr.strip())
            raise BuildError(
                f"Command failed with exit code {result.returncode}: {cmd_str}",
                command=cmd_str,
                returncode=result.returncode,
                stderr=result.stderr,
            )

        return result

    # Diagnostics

    def swift_version(self) -> Optional[str]:
        """Return the Swift compiler version, or None if swift is unavailable."""
        try:
            result = self._run([self.swift, '--version'], check=False)
        except ToolchainError:
            return None
        if result.returncode != 0:
            return None
        # Some toolchains print the banner on stderr
        return parse_swift_version(result.stdout or result.stderr)

    def find_docc(self) -> Optional[str]:
        """Locate the docc executable via xcrun, then PATH."""
        if self._docc_path:
            return self._docc_path
        try:
            result = self._run([self.xcrun, '--find', 'docc'], check=False)
            if result.returncode == 0 and result.stdout.strip():
                self._docc_path = result.stdout.strip()
                return self._docc_path
        except ToolchainError:
            logger.debug("xcrun not available, looking for docc on PATH")
        self._docc_path = shutil.which('docc')
        return self._docc_path

    def installed_xcodes(self) -> List[Path]:
        """Xcode app bundles in the applications directory, sorted by name."""
        if not self.applications_dir.is_dir():
            return []
        return sorted(
            p for p in self.applications_dir.iterdir()
            if XCODE_APP_PATTERN.match(p.name)
        )

    @staticmethod
    def xcode_version_of(app: Path) -> Optional[str]:
        """Version from the bundle name, or from Contents/version.plist."""
        match = XCODE_APP_PATTERN.match(app.name)
        if match and match.group('version'):
            return match.group('version')
        plist = app / 'Contents' / 'version.plist'
        if plist.is_file():
            with open(plist, 'rb') as f:
                return plistlib.load(f).get('CFBundleShortVersionString')
        return None

    def select_xcode(self, version: str) -> Path:
        """
        Pin the Xcode used for every later command.

        ``15.1.0`` matches ``Xcode_15.1.app``: versions are compared
        with packaging's Version, which ignores trailing zeros.

        Returns:
            The selected developer directory

        Raises:
            ToolchainError: If no installed Xcode matches
        """
        wanted = _parse_version(version)
        if wanted is None:
            raise ToolchainError(f"Invalid Xcode version: {version}")

        for app in self.installed_xcodes():
            found = self.xcode_version_of(app)
            if found and _parse_version(found) == wanted:
                self.developer_dir = app / 'Contents' / 'Developer'
                self._docc_path = None
                logger.info(f"Selected Xcode {found} at {app}")
                return self.developer_dir

        raise ToolchainError(f"Xcode {version} is not installed in {self.applications_dir}")

    # Dependency resolution

    def resolve_package(self, root: Path) -> CommandResult:
        return self._run([self.swift, 'package', 'resolve'], cwd=root)

    def resolve_project(self, project_file: Path) -> CommandResult:
        return self._run(
            [self.xcodebuild, '-resolvePackageDependencies', '-project', project_file],
            cwd=project_file.parent,
        )

    # Introspection

    def describe_package(self, root: Path) -> Dict[str, Any]:
        """Parsed output of ``swift package describe --type json``."""
        result = self._run([self.swift, 'package', 'describe', '--type', 'json'], cwd=root)
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise BuildError(f"Could not parse package description: {e}",
                             command=result.command) from e

    def list_schemes(self, project_file: Path) -> List[str]:
        result = self._run(
            [self.xcodebuild, '-list', '-project', project_file],
            cwd=project_file.parent,
        )
        return parse_scheme_listing(result.stdout)

    # Documentation builds

    def generate_package_docs(
        self,
        root: Path,
        target: str,
        output_dir: Path,
        hosting_base_path: str
    ) -> CommandResult:
        """Run the swift-docc-plugin, writing hosting-ready output to ``output_dir``."""
        return self._run(
            [
                self.swift, 'package',
                '--allow-writing-to-directory', output_dir,
                'generate-documentation',
                '--target', target,
                '--output-path', output_dir,
                '--transform-for-static-hosting',
                '--hosting-base-path', hosting_base_path,
            ],
            cwd=root,
        )

    def docbuild(
        self,
        project_file: Path,
        scheme: str,
        derived_data_path: Path,
        destination: str = 'generic/platform=iOS'
    ) -> CommandResult:
        return self._run(
            [
                self.xcodebuild, 'docbuild',
                '-project', project_file,
                '-scheme', scheme,
                '-derivedDataPath', derived_data_path,
                '-destination', destination,
            ],
            cwd=project_file.parent,
        )

    def transform_for_static_hosting(
        self,
        archive: Path,
        output_dir: Path,
        hosting_base_path: str
    ) -> CommandResult:
        docc = self.find_docc()
        if not docc:
            raise ToolchainError("docc not found; cannot transform archive for static hosting")
        return self._run(
            [
                docc, 'process-archive', 'transform-for-static-hosting', archive,
                '--output-path', output_dir,
                '--hosting-base-path', hosting_base_path,
            ]
        )

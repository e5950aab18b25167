"""
Standard exit codes for doccpages commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
PROJECT_NOT_FOUND = 64   # Neither Package.swift nor *.xcodeproj found
TOOLCHAIN_ERROR = 65     # docc / Xcode not available
CONFIG_ERROR = 66        # Configuration file error
BUILD_ERROR = 67         # Build tool returned non-zero or produced no archive
ASSETS_ERROR = 68        # Theme assets directory missing
DEPLOYMENT_ERROR = 69    # Artifact upload or deploy failed
PREEMPTED = 70           # A newer run took over the publish lock
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': GENERAL_ERROR,
    'NotADirectoryError': GENERAL_ERROR,
    'ValueError': USAGE_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    error_type = "error"

    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def to_dict(self) -> dict:
        return {'error': str(self), 'type': self.error_type}


class ProjectNotFoundError(CommandError):
    """Raised when the root holds neither a package manifest nor a project file."""
    error_type = "project_not_found"

    def __init__(self, message: str = "Neither a Swift Package nor an Xcode project found"):
        super().__init__(message, PROJECT_NOT_FOUND)


class ToolchainError(CommandError):
    """Raised when docc, swift or the requested Xcode cannot be found."""
    error_type = "toolchain_error"

    def __init__(self, message: str):
        super().__init__(message, TOOLCHAIN_ERROR)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    error_type = "config_error"

    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class BuildError(CommandError):
    """Raised when a build tool fails or no documentation archive is produced."""
    error_type = "build_error"

    def __init__(self, message: str, command: Optional[str] = None,
                 returncode: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(message, BUILD_ERROR)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.command:
            result['command'] = self.command
        if self.returncode is not None:
            result['returncode'] = self.returncode
        return result


class AssetsNotFoundError(CommandError):
    """Raised when the theme assets directory is missing."""
    error_type = "assets_not_found"

    def __init__(self, path):
        super().__init__(f"Assets directory not found: {path}", ASSETS_ERROR)
        self.path = path


class DeploymentError(CommandError):
    """Raised when the artifact upload or the deploy step fails."""
    error_type = "deployment_error"

    def __init__(self, message: str):
        super().__init__(message, DEPLOYMENT_ERROR)


class PreemptedError(CommandError):
    """Raised when a newer run has taken over the publish lock."""
    error_type = "preempted"

    def __init__(self, message: str, holder: Optional[str] = None):
        super().__init__(message, PREEMPTED)
        self.holder = holder

"""
Infrastructure layer for doccpages.

Contains abstractions for external systems:
- ToolchainClient: swift / xcodebuild / docc execution
- GitClient: Git command execution
- PagesClient: GitHub Pages API access
- BranchTarget, DirectoryTarget: Static-hosting deployment targets
- PublishLock: At-most-one-active-publish per concurrency group

These provide clean interfaces that can be mocked for testing.
"""

from .toolchain import ToolchainClient, CommandResult
from .git_client import GitClient
from .pages_client import PagesClient
from .hosting import HostingTarget, BranchTarget, DirectoryTarget, make_target
from .publish_lock import PublishLock

__all__ = [
    'ToolchainClient',
    'CommandResult',
    'GitClient',
    'PagesClient',
    'HostingTarget',
    'BranchTarget',
    'DirectoryTarget',
    'make_target',
    'PublishLock',
]

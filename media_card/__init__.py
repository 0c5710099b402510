"""
Media Card Core - media providers and metadata pipeline for slideshow displays.

This package supplies a display surface with a continuous sequence of media
items drawn from pluggable sources (single file, flat folder, hierarchical
folder, remote media index) and enriches each item with metadata derived from
its path and fetched from the remote index.

Key modules:
- metadata: Path parsing, custom date formats, remote enrichment
- providers: Provider contract and source variants
- media_types: Image/video classification by extension
- existence: Remote file-existence checks
- navigation: Back/forward history and slideshow navigator
- api_client: Remote service calls (Home Assistant REST API)
- config: Application and card configuration
"""

import os
import re
import subprocess
from importlib.metadata import PackageNotFoundError, version
from typing import Optional


def _run_git_command(args: list[str]) -> Optional[str]:
    """Run a Git command and return its output."""
    try:
        result = subprocess.run(
            ['git'] + args,
            capture_output=True,
            text=True,
            check=True,
            timeout=5
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
        return None


def _get_version_from_git() -> Optional[str]:
    """
    Get version from Git tags.

    Version Format:
    - Tagged releases: "v1.2.3"
    - Development builds: "v1.2.3-dev.5+a1b2c3d"
    """
    describe = _run_git_command(['describe', '--tags', '--long', '--always'])
    if not describe:
        return None

    match = re.match(r'^(.+?)-(\d+)-g([a-f0-9]+)$', describe)
    if match:
        tag, commits_since, commit_hash = match.groups()
        if int(commits_since) == 0:
            return tag
        return f"{tag}-dev.{commits_since}+{commit_hash}"

    # Untagged repository: describe --always yields the bare hash
    return f"v0.0.0-dev+{describe}"


def _get_version() -> str:
    """
    Get version with priority: MEDIA_CARD_VERSION env var > installed metadata > Git tags.

    Priority:
    1. MEDIA_CARD_VERSION env var - explicit runtime override
    2. Installed distribution metadata
    3. Git tags - development mode (running from source)
    4. Fallback - unknown version
    """
    env_version = os.environ.get('MEDIA_CARD_VERSION')
    if env_version:
        return env_version

    try:
        return version('media-card-core')
    except PackageNotFoundError:
        pass

    git_version = _get_version_from_git()
    if git_version:
        return git_version

    return 'v0.0.0-dev+unknown'


__version__ = _get_version()

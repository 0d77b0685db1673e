"""Path, URL and option helpers used across the scanner."""

from __future__ import annotations

import getpass
import logging
import os
import re
import shutil
import sys
from pathlib import Path
from urllib.parse import urlparse

log = logging.getLogger(__name__)

ERR_INVALID_PATH = "Invalid Path. Exiting."
EB_CONF_FILE_DIR = ".go-earlybird"
EB_CONF_FILE_NAME = "earlybird.json"
EB_WIN_CONF_FILE_DIR = "\\AppData\\go-earlybird\\"
GIT_HTTP = "http://"
GIT_HTTPS = "https://"
_GIT_LOGIN_PROMPT = "Enter your git " + "password: "
ERR_GIT_DELETE = "Failed to delete git dir: "

STAGED = "staged"
TRACKED = "tracked"
ALL = "all"

_GIT_URL_PATTERN = re.compile(r"([^/]*)(?:.git)")
_BB_PROJECT_PATTERN = re.compile(r"(?:projects/)([^/]*)")


def contains(haystack, needle: str) -> bool:
    """Return True if ``needle`` is one of the items of ``haystack``."""
    return needle in haystack


def exists(path: str | os.PathLike) -> bool:
    """Return True unless the path is known not to exist."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def path_must_exist(path: str | os.PathLike):
    """Return ``path`` if it exists, otherwise raise FileNotFoundError."""
    if not exists(path):
        raise FileNotFoundError(ERR_INVALID_PATH)
    return path


def must_get_ed() -> str:
    """Return the directory holding the running program."""
    program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return os.path.dirname(os.path.abspath(program))


def must_get_wd() -> str:
    """Return the current working directory."""
    return os.getcwd()


def get_config_dir() -> str:
    """Return the configuration directory, preferring a local override."""
    home = str(Path.home())
    override_dir = os.sep + EB_CONF_FILE_DIR + os.sep
    local_override_dir = must_get_ed() + override_dir
    if exists(local_override_dir + EB_CONF_FILE_NAME):
        log.info("Using local config directory: %s", local_override_dir)
        return local_override_dir

    if sys.platform.startswith("win"):
        suffix = EB_WIN_CONF_FILE_DIR
    elif sys.platform.startswith("linux") or sys.platform == "darwin":
        suffix = override_dir
    else:
        suffix = ""
    return home + suffix


def get_target_type(git_staged: bool, git_tracked: bool) -> str:
    """Return the file scan context for the given git flags."""
    if git_staged:
        return STAGED
    if git_tracked:
        return TRACKED
    return ALL


def get_enabled_modules_map(enable_flags, available_modules: dict[str, str]) -> dict[str, str]:
    """Map enabled module names to their rule file names.

    With no explicit flags every available module is enabled; unknown
    module names map to an empty file name.
    """
    if not enable_flags:
        return dict(available_modules)
    return {name: available_modules.get(name, "") for name in enable_flags}


def get_display_list(level_names) -> str:
    """Format a list of names for display."""
    return "[ " + " | ".join(level_names) + " ]"


def delete_git(repo: str, path: str | os.PathLike) -> None:
    """Remove ``path`` when a repository was cloned into it."""
    if not repo:
        return
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as err:
        log.warning("%s%s", ERR_GIT_DELETE, err)


def get_git_repo(git_url: str) -> str:
    """Parse the repository name from a git URL."""
    if "github.com/" in git_url:
        try:
            parsed = urlparse(git_url)
        except ValueError:
            return ""
        return parsed.path.removeprefix("/")
    match = _GIT_URL_PATTERN.search(git_url)
    return match.group(1) if match else ""


def get_bb_project(bb_url: str) -> str:
    """Parse the project name from a Bitbucket URL."""
    match = _BB_PROJECT_PATTERN.search(bb_url)
    if match is None:
        raise ValueError(f"Failed To Get BB Project from URL: {bb_url}")
    return match.group(1)


def parse_bb_url(bb_url: str) -> tuple[str, str, str]:
    """Split a Bitbucket URL into base URL, path prefix and project name."""
    try:
        parsed = urlparse(bb_url)
    except ValueError:
        log.warning("Failed to parse Bitbucket URL")
        return "", "", ""
    host = parsed.netloc.rpartition("@")[2]
    base_url = f"{parsed.scheme}://{host}"
    before_projects = bb_url.split("/projects/")[0]
    path = before_projects.replace(base_url, "")
    return base_url, path, get_bb_project(bb_url)


def get_git_project(git_url: str) -> str:
    """Return the path of a git URL without its leading slash."""
    try:
        parsed = urlparse(git_url)
    except ValueError:
        return ""
    return parsed.path.removeprefix("/")


def get_git_url(repo: str, repo_user: str) -> tuple[str, str, str]:
    """Normalise a git URL to HTTPS and ask for a password when a user is known.

    Returns ``(url, user, password)``; the password is empty when no user
    is given either explicitly or in the URL.
    """
    try:
        parsed = urlparse(repo)
    except ValueError:
        return repo, repo_user, ""

    username = parsed.username or ""
    repo = repo.replace(username + "@", "", 1)
    if not repo_user:
        repo_user = username

    repo = repo.replace(GIT_HTTP, "", 1)
    repo = repo.replace(GIT_HTTPS, "", 1)
    repo = GIT_HTTPS + repo

    if repo_user:
        return repo, repo_user, getpass.getpass(_GIT_LOGIN_PROMPT)
    return repo, repo_user, ""


def get_alpha_numeric_values(text: str) -> str:
    """Keep only the letters and digits of ``text``."""
    return "".join(ch for ch in text if ch.isalpha() or ch.isnumeric())
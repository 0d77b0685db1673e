"""Download fresh rule modules and the application configuration."""

from __future__ import annotations

import logging
import os
import posixpath
import urllib.request
from urllib.error import HTTPError, URLError
from urllib.parse import urlsplit, urlunsplit

log = logging.getLogger(__name__)


class UpdateError(Exception):
    """Raised when a configuration file cannot be downloaded or saved."""


def _join_url(base_url: str, file_name: str) -> str:
    parts = urlsplit(base_url)
    path = posixpath.normpath(posixpath.join(parts.path or "/", file_name))
    if not path.startswith("/"):
        path = "/" + path
    return urlunsplit(parts._replace(path=path))


def update_config_files(
    config_dir,
    rules_config_dir,
    app_config_path,
    app_config_url,
    rule_modules_filename_map,
    config_base_url,
) -> None:
    """Download every rule module and then the application config file."""
    for file_name in rule_modules_filename_map.values():
        module_file_path = os.path.join(rules_config_dir, file_name)
        log.info("Updating %s", module_file_path)
        download_file(module_file_path, _join_url(config_base_url, file_name))

    log.info("Updating %s", app_config_path)
    download_file(os.path.join(config_dir, "earlybird.json"), app_config_url)


def download_file(path, url: str) -> None:
    """Fetch ``url`` and write the body to ``path``; only status 200 is accepted."""
    request = urllib.request.Request(url, headers={"Accept": "application/json"}, method="GET")
    try:
        with urllib.request.urlopen(request) as response:
            status = response.status
            try:
                body = response.read()
            except OSError as err:
                raise UpdateError(f"reading response body: {err}") from err
    except HTTPError as err:
        detail = err.read().decode("utf-8", errors="replace")
        raise UpdateError(
            f"received non 200 status code: status={err.code}, response={detail}"
        ) from err
    except URLError as err:
        raise UpdateError(f"downloading file from {url}: {err.reason}") from err
    except (OSError, ValueError) as err:
        raise UpdateError(f"downloading file from {url}: {err}") from err

    if status != 200:
        raise UpdateError(
            f"received non 200 status code: status={status}, "
            f"response={body.decode('utf-8', errors='replace')}"
        )

    try:
        with open(path, "wb") as handle:
            handle.write(body)
    except OSError as err:
        raise UpdateError(f"writing file at {path}: {err}") from err
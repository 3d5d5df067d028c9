"""Client for the recording server's HTTP API."""

from __future__ import annotations

import mimetypes
import os
import platform
import sys
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import requests

from .cli import VERSION
from .config import Config


class ApiError(Exception):
    """Raised when a server request fails."""


@dataclass(frozen=True)
class UploadResponse:
    url: str
    message: str | None = None


@dataclass(frozen=True)
class UserStreamResponse:
    ws_producer_url: str
    url: str


def _with_path(url: str, path: str) -> str:
    parts = urlsplit(url)
    return urlunsplit(parts._replace(path="/" + path))


def _hostname(url: str) -> str:
    return urlsplit(url).hostname or ""


def _username() -> str:
    return os.environ.get("USER", "")


def build_user_agent() -> str:
    """Return the User-Agent header value sent with every request."""
    target = f"{platform.machine() or 'unknown'}-{sys.platform}"
    return f"termcast/{VERSION} target/{target}"


def _headers() -> dict[str, str]:
    return {"User-Agent": build_user_agent(), "Accept": "application/json"}


def upload_url(server_url: str) -> str:
    return _with_path(server_url, "api/asciicasts")


def user_stream_url(server_url: str, stream_id: str) -> str:
    if stream_id:
        return _with_path(server_url, f"api/user/streams/{stream_id}")
    return _with_path(server_url, "api/user/stream")


def get_auth_url(config: Config) -> str:
    """Return the URL that links this installation to a user account."""
    return _with_path(config.get_server_url(), f"connect/{config.get_install_id()}")


def _json_object(response: requests.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise ApiError(f"invalid response from server: {exc}") from exc

    if not isinstance(data, dict):
        raise ApiError("invalid response from server: expected a JSON object")

    return data


def _str_field(data: dict[str, Any], key: str, required: bool = True) -> str | None:
    value = data.get(key)

    if value is None and not required:
        return None

    if not isinstance(value, str):
        raise ApiError(f"invalid response from server: missing or invalid `{key}`")

    return value


def _raise_for_status(response: requests.Response) -> None:
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise ApiError(str(exc)) from exc


def upload_asciicast(path: str | os.PathLike[str], config: Config) -> UploadResponse:
    """Upload a recording file and return where it was published."""
    server_url = config.get_server_url()
    install_id = config.get_install_id()
    filename = os.path.basename(os.fspath(path))
    mime = mimetypes.guess_type(filename)[0] or "application/octet-stream"

    try:
        with open(path, "rb") as file:
            response = requests.post(
                upload_url(server_url),
                files={"asciicast": (filename, file, mime)},
                auth=(_username(), install_id),
                headers=_headers(),
            )
    except requests.RequestException as exc:
        raise ApiError(str(exc)) from exc
    except OSError as exc:
        raise ApiError(f"cannot read {os.fspath(path)}: {exc}") from exc

    if response.status_code == 413:
        raise ApiError("The size of the recording exceeds the server's configured limit")

    _raise_for_status(response)
    data = _json_object(response)

    return UploadResponse(
        url=_str_field(data, "url"),
        message=_str_field(data, "message", required=False),
    )


def get_user_stream(stream_id: str, config: Config) -> UserStreamResponse:
    """Fetch the producer endpoint of a user's stream; empty id means the default one."""
    server_url = config.get_server_url()
    hostname = _hostname(server_url)

    try:
        response = requests.get(
            user_stream_url(server_url, stream_id),
            auth=("", config.get_install_id()),
            headers=_headers(),
        )
    except requests.RequestException as exc:
        raise ApiError(f"cannot obtain stream producer endpoint: {exc}") from exc

    if response.status_code == 401:
        raise ApiError(
            f"this CLI hasn't been authenticated with {hostname} - run `termcast auth` first"
        )

    if response.status_code == 404:
        try:
            reason = response.json()["reason"]
        except (ValueError, KeyError, TypeError):
            reason = None

        if isinstance(reason, str):
            raise ApiError(reason)

        raise ApiError(f"{hostname} doesn't support streaming")

    _raise_for_status(response)
    data = _json_object(response)

    return UserStreamResponse(
        ws_producer_url=_str_field(data, "ws_producer_url"),
        url=_str_field(data, "url"),
    )
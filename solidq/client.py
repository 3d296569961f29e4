"""HTTP client for a SolidQ queue server, with a polling work loop."""

from __future__ import annotations

import json
import signal
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any
from urllib.parse import urlencode, urljoin, urlsplit, urlunsplit

import requests

from solidq.queue import Work

_DEFAULT_POLL_WAIT = 1.0


class ClientError(Exception):
    """Raised when a request to the queue server fails."""


class _ServerError(ClientError):
    """The server answered with success false and an error message."""

    def __init__(self, error: str) -> None:
        super().__init__(f"server error: {error}")
        self.error = error


def _validate_base_url(base_url: str) -> None:
    if not isinstance(base_url, str) or not base_url:
        raise ValueError("invalid base URL: empty url")
    if base_url.startswith("/"):
        return
    if not urlsplit(base_url).scheme:
        raise ValueError(f"invalid base URL: {base_url!r} is not an absolute URI")


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}s"


def _parse_work(item: Any) -> Work[Any]:
    if not isinstance(item, Mapping):
        raise ClientError(f"unexpected work item in server response: {item!r}")
    fields = {str(key).lower(): value for key, value in item.items()}
    return Work(id=fields.get("id") or "", data=fields.get("data"))


class Client:
    """Talks to a queue server over HTTP."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float | None = None,
        default_poll_wait: float = _DEFAULT_POLL_WAIT,
    ) -> None:
        _validate_base_url(base_url)
        self.base_url = base_url
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout if timeout and timeout > 0 else None
        self.default_poll_wait = (
            default_poll_wait
            if default_poll_wait and default_poll_wait > 0
            else _DEFAULT_POLL_WAIT
        )

    def _build_url(self, path: str, params: Mapping[str, str] | None = None) -> str:
        full = urljoin(self.base_url, path)
        if not params:
            return full
        parts = urlsplit(full)
        query = urlencode(sorted(params.items()))
        return urlunsplit(parts._replace(query=query))

    def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> dict[str, Any]:
        url = self._build_url(path, params)
        headers = {"Content-Type": "application/json"} if body is not None else {}
        try:
            resp = self.session.request(
                method, url, data=body, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise ClientError(f"failed to execute request: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            try:
                phrase = HTTPStatus(resp.status_code).phrase
            except ValueError:
                phrase = ""
            raise ClientError(
                f"server returned non-2xx status: {resp.status_code} {phrase}. "
                f"Body: {resp.text}"
            )

        try:
            decoded = resp.json()
        except ValueError as exc:
            raise ClientError(
                f"failed to decode server response: {exc}. Raw body: {resp.text}"
            ) from exc
        if not isinstance(decoded, dict):
            raise ClientError(
                f"failed to decode server response: not an object. Raw body: {resp.text}"
            )

        if not decoded.get("success") and decoded.get("error"):
            raise _ServerError(str(decoded["error"]))
        return decoded

    def _call(self, operation: str, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            return self._request(method, path, **kwargs)
        except _ServerError as exc:
            raise ClientError(f"server error on {operation}: {exc.error}") from exc
        except ClientError as exc:
            raise ClientError(f"{operation} request failed: {exc}") from exc

    def push(self, channel: str, work: Work[Any]) -> None:
        """Add ``work`` to ``channel`` on the server."""
        if not channel:
            raise ValueError("channel cannot be empty")
        if not work.id:
            raise ValueError("workID cannot be empty")
        try:
            body = json.dumps(work.data).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise ValueError(f"failed to marshal payload data: {exc}") from exc
        reply = self._call(
            "push",
            "POST",
            "/solidq/push",
            params={"channel": channel, "id": work.id},
            body=body,
        )
        if not reply.get("success"):
            raise ClientError(
                "push operation failed on server without specific error message"
            )

    def pop(self, channel: str, count: int = 1) -> list[Work[Any]]:
        """Take up to ``count`` items from ``channel``; [] when it is empty."""
        if not channel:
            raise ValueError("channel cannot be empty")
        reply = self._call(
            "pop", "GET", f"/solidq/pop/{count}", params={"channel": channel}
        )
        if not reply.get("success"):
            error = reply.get("error")
            if not error:
                return []
            raise ClientError(f"pop operation failed on server: {error}")
        items = reply.get("work")
        if items is None:
            raise ClientError("pop operation succeeded but no work item was returned")
        if not isinstance(items, list):
            raise ClientError(f"unexpected work list in server response: {items!r}")
        return [_parse_work(item) for item in items]

    def count(self, channel: str) -> int:
        """Return the number of items waiting in ``channel``."""
        if not channel:
            raise ValueError("channel cannot be empty")
        reply = self._call("count", "GET", "/solidq/count", params={"channel": channel})
        if not reply.get("success"):
            raise ClientError(
                f"count operation failed on server: {reply.get('error', '')}"
            )
        return int(reply.get("count") or 0)

    def reset(self, channel: str) -> None:
        """Remove every item from ``channel``."""
        if not channel:
            raise ValueError("channel cannot be empty")
        reply = self._call("reset", "GET", "/solidq/reset", params={"channel": channel})
        if not reply.get("success"):
            raise ClientError(
                f"reset operation failed on server: {reply.get('error', '')}"
            )

    def list_channels(self) -> dict[str, int]:
        """Return every channel with its item count."""
        reply = self._call("listChannels", "GET", "/solidq/channels")
        if not reply.get("success"):
            raise ClientError(
                f"listChannels operation failed on server: {reply.get('error', '')}"
            )
        return dict(reply.get("channels") or {})

    def work_loop(
        self,
        channel: str,
        worker: Callable[[WorkerContext], Any],
        poll_wait: float | None = None,
    ) -> None:
        """Poll ``channel`` and hand each item to ``worker`` until interrupted.

        SIGINT and SIGTERM stop the loop gracefully when it runs in the main
        thread. Errors while popping are reported and retried; exceptions
        raised by ``worker`` propagate.
        """
        if not channel:
            raise ValueError("channel cannot be empty for WorkLoop")
        if worker is None:
            raise ValueError("workerFunc cannot be nil for WorkLoop")

        wait = poll_wait if poll_wait and poll_wait > 0 else self.default_poll_wait
        stop = threading.Event()

        def _on_signal(signum: int, frame: Any) -> None:
            print(
                f"\nWorkLoop for channel '{channel}' received interrupt signal, "
                "shutting down..."
            )
            stop.set()

        previous: dict[int, Any] = {}
        if threading.current_thread() is threading.main_thread():
            for signum in (signal.SIGINT, signal.SIGTERM):
                previous[signum] = signal.signal(signum, _on_signal)

        try:
            print(
                f"Starting WorkLoop for channel '{channel}'. Polling every "
                f"{_format_seconds(wait)} when empty. Press Ctrl+C to exit."
            )
            while True:
                if stop.is_set():
                    print(
                        f"WorkLoop for channel '{channel}' stopping due to "
                        "context cancellation."
                    )
                    return

                try:
                    works = self.pop(channel)
                except ClientError as exc:
                    if stop.is_set():
                        print(
                            f"WorkLoop for channel '{channel}' stopping after Pop "
                            "error due to context cancellation."
                        )
                        return
                    print(
                        f"Error popping from channel '{channel}': {exc}. "
                        f"Retrying after {_format_seconds(wait)}."
                    )
                    stop.wait(wait)
                    continue

                if works:
                    for work in works:
                        worker(WorkerContext(work=work, client=self))
                elif stop.wait(wait):
                    print(
                        f"WorkLoop for channel '{channel}' stopping during poll "
                        "wait due to context cancellation."
                    )
                    return
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)


@dataclass
class WorkerContext:
    """The item being processed and shortcuts to the client that fetched it."""

    work: Work[Any]
    client: Client

    def push(self, channel: str, work: Work[Any]) -> None:
        self.client.push(channel, work)

    def count(self, channel: str) -> int:
        return self.client.count(channel)

    def reset(self, channel: str) -> None:
        self.client.reset(channel)

    def list_channels(self) -> dict[str, int]:
        return self.client.list_channels()
"""Sequential file downloads that never leave a partial file behind."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import httpx

from pinpoint.signals import Signal

CANCELED_MESSAGE = "Operation canceled"


@dataclass(frozen=True)
class DownloadItem:
    url: str
    local_path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "local_path", Path(self.local_path))


class _Aborted(Exception):
    pass


class ModelDownloader:
    """Downloads (URL, local path) pairs one after another.

    Each file is written to ``<path>.part`` and renamed on success. Signals:
    ``progress(file_index, file_count, bytes_received, bytes_total)`` with
    bytes_total -1 when the size is unknown, ``file_complete(path)``,
    ``finished()`` and ``failed(message)``.
    """

    def __init__(self, client: httpx.Client | None = None, chunk_size: int = 64 * 1024) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=True, timeout=60.0)
        self.chunk_size = chunk_size
        self._abort = threading.Event()
        self.progress = Signal()
        self.file_complete = Signal()
        self.finished = Signal()
        self.failed = Signal()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ModelDownloader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def download(self, items: Iterable[DownloadItem]) -> None:
        """Fetch every item in order; stops at the first failure."""
        self._abort.clear()
        queue = list(items)
        for index, item in enumerate(queue):
            if not self._fetch(index, len(queue), item):
                return
        self.finished.emit()

    def abort(self) -> None:
        """Stop the download in progress; its partial file is removed."""
        self._abort.set()

    def _fetch(self, index: int, count: int, item: DownloadItem) -> bool:
        final_path = item.local_path
        part_path = final_path.with_name(final_path.name + ".part")
        try:
            final_path.absolute().parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
        try:
            part = part_path.open("wb")
        except OSError:
            self.failed.emit(f"Cannot write to {final_path}")
            return False

        try:
            with part:
                with self._client.stream("GET", item.url) as response:
                    if response.is_error:
                        raise httpx.HTTPStatusError(
                            f"Error downloading {item.url}: server replied "
                            f"{response.status_code} {response.reason_phrase}",
                            request=response.request,
                            response=response,
                        )
                    total = int(response.headers.get("Content-Length", -1))
                    received = 0
                    for chunk in response.iter_bytes(self.chunk_size):
                        part.write(chunk)
                        received += len(chunk)
                        self.progress.emit(index, count, received, total)
                        if self._abort.is_set():
                            raise _Aborted
        except _Aborted:
            part_path.unlink(missing_ok=True)
            self.failed.emit(CANCELED_MESSAGE)
            return False
        except (httpx.HTTPError, OSError, ValueError) as exc:
            part_path.unlink(missing_ok=True)
            self.failed.emit(str(exc))
            return False

        final_path.unlink(missing_ok=True)
        os.replace(part_path, final_path)
        self.file_complete.emit(str(final_path))
        return True
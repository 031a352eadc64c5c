import httpx

from pinpoint.downloader import CANCELED_MESSAGE, DownloadItem, ModelDownloader

FILES = {
    "https://models.example.com/model.onnx": b"model-bytes-0123456789",
    "https://models.example.com/voice.bin": b"voice-bytes",
}


def _client():
    def handler(request):
        data = FILES.get(str(request.url))
        if data is None:
            return httpx.Response(404)
        return httpx.Response(200, content=data)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _record(downloader):
    events = {"progress": [], "complete": [], "finished": 0, "failed": []}
    downloader.progress.connect(lambda *a: events["progress"].append(a))
    downloader.file_complete.connect(events["complete"].append)
    downloader.failed.connect(events["failed"].append)

    def on_finished():
        events["finished"] += 1

    downloader.finished.connect(on_finished)
    return events


def test_downloads_all_files(tmp_path):
    dl = ModelDownloader(client=_client())
    events = _record(dl)
    items = [DownloadItem(url, tmp_path / "sub" / url.rsplit("/", 1)[1]) for url in FILES]
    dl.download(items)
    assert events["finished"] == 1
    assert events["failed"] == []
    assert events["complete"] == [str(item.local_path) for item in items]
    for item, data in zip(items, FILES.values()):
        assert item.local_path.read_bytes() == data
    assert not list(tmp_path.rglob("*.part"))


def test_progress_reports_index_and_totals(tmp_path):
    dl = ModelDownloader(client=_client())
    events = _record(dl)
    items = [DownloadItem(url, tmp_path / str(i)) for i, url in enumerate(FILES)]
    dl.download(items)
    last_per_file = {}
    for index, count, received, total in events["progress"]:
        assert count == len(items)
        last_per_file[index] = (received, total)
    sizes = [len(d) for d in FILES.values()]
    assert last_per_file == {0: (sizes[0], sizes[0]), 1: (sizes[1], sizes[1])}


def test_empty_list_finishes(tmp_path):
    dl = ModelDownloader(client=_client())
    events = _record(dl)
    dl.download([])
    assert events["finished"] == 1


def test_http_error_stops_and_cleans_up(tmp_path):
    dl = ModelDownloader(client=_client())
    events = _record(dl)
    missing = DownloadItem("https://models.example.com/missing", tmp_path / "missing")
    after = DownloadItem("https://models.example.com/voice.bin", tmp_path / "voice")
    dl.download([missing, after])
    assert events["finished"] == 0
    assert len(events["failed"]) == 1
    assert "404" in events["failed"][0]
    assert not (tmp_path / "missing").exists()
    assert not (tmp_path / "voice").exists()
    assert not list(tmp_path.glob("*.part"))


def test_unwritable_target(tmp_path):
    blocker = tmp_path / "afile"
    blocker.write_text("x")
    dl = ModelDownloader(client=_client())
    events = _record(dl)
    target = blocker / "model.onnx"
    dl.download([DownloadItem("https://models.example.com/model.onnx", target)])
    assert events["failed"] == [f"Cannot write to {target}"]
    assert events["finished"] == 0


def test_abort_discards_part(tmp_path):
    dl = ModelDownloader(client=_client(), chunk_size=4)
    events = _record(dl)
    dl.progress.connect(lambda *a: dl.abort())
    target = tmp_path / "model.onnx"
    dl.download([DownloadItem("https://models.example.com/model.onnx", target)])
    assert events["failed"] == [CANCELED_MESSAGE]
    assert len(events["progress"]) == 1
    assert not target.exists()
    assert not list(tmp_path.glob("*.part"))


def test_replaces_existing_file(tmp_path):
    target = tmp_path / "voice.bin"
    target.write_bytes(b"old")
    dl = ModelDownloader(client=_client())
    dl.download([DownloadItem("https://models.example.com/voice.bin", target)])
    assert target.read_bytes() == FILES["https://models.example.com/voice.bin"]
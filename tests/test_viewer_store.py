import json

from toolkit_core.viewers.models import Viewer
from toolkit_core.viewers.store import ViewerStore


def test_missing_file_loads_empty(tmp_path):
    assert ViewerStore(tmp_path / "viewers.json").load() == []


def test_save_then_load(tmp_path):
    path = tmp_path / "viewers.json"
    store = ViewerStore(path)
    assert store.save([Viewer(username="Alice", is_moderator=True), Viewer(username="bob")]) is True
    on_disk = json.loads(path.read_text())
    assert [v["username"] for v in on_disk["viewers"]] == ["Alice", "bob"]
    assert all("badges" not in v for v in on_disk["viewers"])

    loaded = ViewerStore(path).load()
    assert [v.username for v in loaded] == ["Alice", "bob"]
    assert loaded[0].is_moderator is True


def test_identical_save_is_skipped(tmp_path):
    store = ViewerStore(tmp_path / "viewers.json")
    viewers = [Viewer(username="alice")]
    assert store.save(viewers) is True
    assert store.save(viewers) is False


def test_load_keeps_duplicates_and_skips_bad_entries(tmp_path):
    path = tmp_path / "viewers.json"
    path.write_text(
        json.dumps(
            {"viewers": [{"username": "Alice"}, {"username": "alice"}, "junk", {"username": ""}]}
        )
    )
    loaded = ViewerStore(path).load()
    assert [v.username for v in loaded] == ["Alice", "alice"]


def test_corrupt_file_logs_and_returns_empty(tmp_path, caplog):
    path = tmp_path / "viewers.json"
    path.write_text("{not json")
    assert ViewerStore(path).load() == []
    assert "Viewer load failed" in caplog.text

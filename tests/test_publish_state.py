"""Tests for persisted publish state."""

from pathlib import Path

from pubsync.core.publish import PublishState, PublishStateStore


class TestPublishStateStore:
    def test_load_without_file(self, tmp_path: Path) -> None:
        state = PublishStateStore(tmp_path).load()

        assert state == PublishState()
        assert state.last_revision is None

    def test_save_and_load(self, tmp_path: Path) -> None:
        store = PublishStateStore(tmp_path)
        state = store.load()
        state.mark_published("0123456789abcdef", remote="origin", branch="main")

        store.save(state)
        loaded = PublishStateStore(tmp_path).load()

        assert loaded.last_revision == "0123456789abcdef"
        assert loaded.remote == "origin"
        assert loaded.branch == "main"
        assert loaded.last_published_at == state.last_published_at

    def test_save_creates_directory_and_no_temp_file(self, tmp_path: Path) -> None:
        store = PublishStateStore(tmp_path)

        store.save(PublishState(last_revision="abc"))

        assert store.path == tmp_path.resolve() / ".pubsync" / "state.json"
        assert store.path.exists()
        assert not store.path.with_suffix(".tmp").exists()

    def test_corrupt_file_gives_empty_state(self, tmp_path: Path) -> None:
        store = PublishStateStore(tmp_path)
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{ not json")

        assert store.load().last_revision is None

    def test_all_branches_publish_clears_target(self) -> None:
        state = PublishState(remote="origin", branch="main")

        state.mark_published("abc")

        assert state.remote is None
        assert state.branch is None

"""Tests for the persisted resolution index."""

import json

from resolution.index import BaseResolutionIndex, FileResolutionIndex

INDEX_PATH = ".deps/npm/.resolution-index.json"


class TestPersistence:
    """Load and save through the IO adapter."""

    def test_round_trip(self, fake_io):
        """Test saving and reloading the index."""
        index = FileResolutionIndex(fake_io)
        index.ensure_loaded()
        index.record_resolution("main.sol", "@s/p/a.sol", "@s/p@1.0.0/a.sol")
        index.save()

        assert ".deps/npm" in fake_io.dirs
        reloaded = FileResolutionIndex(fake_io)
        reloaded.ensure_loaded()
        assert reloaded.lookup("main.sol", "@s/p/a.sol") == ".deps/npm/@s/p@1.0.0/a.sol"
        assert reloaded.lookup_any("@s/p/a.sol") == ".deps/npm/@s/p@1.0.0/a.sol"

    def test_stale_entries_removed(self, fake_io):
        """Test that cleared entries are not saved."""
        fake_io.add_json(INDEX_PATH, {"main.sol": {"old.sol": "old.sol"}})
        index = FileResolutionIndex(fake_io)
        index.ensure_loaded()

        index.clear_file_resolutions("main.sol")
        index.record_resolution("main.sol", "new.sol", "new.sol")
        index.save()

        saved = json.loads(fake_io.files[INDEX_PATH])
        assert saved == {"main.sol": {"new.sol": "new.sol"}}

    def test_unchanged_record_is_not_dirty(self, fake_io):
        """Test that rewriting a value does not dirty the index."""
        fake_io.add_json(INDEX_PATH, {"main.sol": {"a.sol": "a.sol"}})
        index = FileResolutionIndex(fake_io)
        index.ensure_loaded()

        index.record_resolution("main.sol", "a.sol", "a.sol")

        assert not index.dirty
        index.save()
        assert json.loads(fake_io.files[INDEX_PATH]) == {"main.sol": {"a.sol": "a.sol"}}

    def test_corrupt_index_starts_empty(self, fake_io):
        """Test loading a corrupt index file."""
        fake_io.files[INDEX_PATH] = "{broken"
        index = FileResolutionIndex(fake_io)
        index.ensure_loaded()
        assert index.loaded
        assert index.index == {}

    def test_save_without_changes_writes_nothing(self, fake_io):
        """Test that a clean index is not written."""
        index = FileResolutionIndex(fake_io)
        index.ensure_loaded()
        index.save()
        assert INDEX_PATH not in fake_io.files


class TestNormalization:
    """Source keys and local paths."""

    def test_cache_paths_share_a_key(self, fake_io):
        """Test that cache and bare paths share a source key."""
        index = FileResolutionIndex(fake_io)
        index.record_resolution(".deps/npm/@s/p@1.0.0/a.sol", "./b.sol", "@s/p@1.0.0/b.sol")
        assert index.lookup("@s/p@1.0.0/a.sol", "./b.sol") == ".deps/npm/@s/p@1.0.0/b.sol"
        assert index.get_resolutions_for_file(".deps/npm/@s/p@1.0.0/a.sol") == {"./b.sol": ".deps/npm/@s/p@1.0.0/b.sol"}

    def test_github_source_key(self):
        """Test the source key of a GitHub cache path."""
        assert BaseResolutionIndex.normalize_source_file(".deps/github/o/r@v1/a.sol") == "github/o/r@v1/a.sol"

    def test_to_local_path(self):
        """Test local paths of resolved specifiers."""
        assert BaseResolutionIndex.to_local_path("https://example.com/a/b.sol") == ".deps/http/example.com/a/b.sol"
        assert BaseResolutionIndex.to_local_path("github/o/r@v1/x.sol") == ".deps/github/o/r@v1/x.sol"
        assert BaseResolutionIndex.to_local_path("ipfs/Qm/x.sol") == ".deps/ipfs/Qm/x.sol"
        assert BaseResolutionIndex.to_local_path("contracts/A.sol") == "contracts/A.sol"
        assert BaseResolutionIndex.to_local_path(".deps/custom/x.sol") == ".deps/custom/x.sol"

    def test_clear_missing_file_is_noop(self, fake_io):
        """Test clearing a file that has no entries."""
        index = FileResolutionIndex(fake_io)
        index.clear_file_resolutions("nothing.sol")
        assert not index.dirty
        assert index.get_resolutions_for_file("nothing.sol") is None

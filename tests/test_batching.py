"""Tests for ordering and size-bounded prefix selection."""

from pathselector.batching import Batch, select_prefix, sort_files
from pathselector.filesystem import FileEntry


def _f(name: str, mtime: int, size: int = 100) -> FileEntry:
    return FileEntry(f"/data/{name}", size, mtime)


class TestSortFiles:
    def test_oldest_first(self):
        files = [_f("c", 30), _f("a", 10), _f("b", 20)]
        assert [f.mtime for f in sort_files(files)] == [10, 20, 30]

    def test_equal_mtime_sorted_by_path(self):
        files = [_f("z", 5), _f("a", 5), _f("m", 5)]
        assert [f.path for f in sort_files(files)] == ["/data/a", "/data/m", "/data/z"]


class TestSelectPrefix:
    def test_empty_input_gives_empty_batch(self):
        batch = select_prefix([], 1000)
        assert batch == Batch()
        assert not batch
        assert batch.max_mtime is None

    def test_everything_fits(self):
        batch = select_prefix([_f("b", 20), _f("a", 10)], 1000)
        assert [f.path for f in batch.files] == ["/data/a", "/data/b"]
        assert batch.total_bytes == 200
        assert batch.max_mtime == 20

    def test_stops_before_budget_is_reached(self):
        files = [_f("a", 10), _f("b", 20), _f("c", 30)]
        batch = select_prefix(files, 250)
        assert [f.path for f in batch.files] == ["/data/a", "/data/b"]
        assert batch.max_mtime == 20

    def test_budget_is_exclusive(self):
        """Reaching the budget exactly is already too much."""
        batch = select_prefix([_f("a", 10), _f("b", 20)], 200)
        assert len(batch) == 1
        assert batch.total_bytes == 100

    def test_does_not_skip_ahead_to_smaller_file(self):
        files = [_f("small", 10, size=50), _f("huge", 20, size=10_000), _f("tiny", 30, size=1)]
        batch = select_prefix(files, 1000)
        assert [f.path for f in batch.files] == ["/data/small"]

    def test_oversized_first_file_gives_empty_batch(self):
        batch = select_prefix([_f("huge", 10, size=5000), _f("small", 20, size=1)], 1000)
        assert not batch
        assert batch.total_bytes == 0
        assert batch.max_mtime is None

    def test_total_always_below_budget(self):
        files = [_f(f"f{i:03}", i, size=(i * 37) % 101 + 1) for i in range(200)]
        for budget in (1, 2, 50, 101, 1_000, 5_000, 100_000):
            assert select_prefix(files, budget).total_bytes < budget

    def test_selection_is_a_prefix_of_sorted_order(self):
        files = [_f(f"f{i}", (i * 7919) % 113, size=10 + i) for i in range(60)]
        ordered = sort_files(files)
        batch = select_prefix(files, 900)
        assert list(batch.files) == ordered[: len(batch)]
        if len(batch) < len(ordered):
            assert batch.max_mtime <= ordered[len(batch)].mtime

"""
Tests for the Snapshot Command Line Tool

Run with: python -m pytest tests/test_cli.py -v
"""

import pickle
from fractions import Fraction

from ttl_cache import NO_EXPIRATION, EncodeError
from ttl_cache.cache.store import Cache
from ttl_cache.cli import main, parse_args
from ttl_cache.persistence import snapshot


class BadFraction:
    def __reduce__(self):
        return (Fraction, (1, 0))


def write_snapshot(make_cache, path, clock) -> None:
    cache = make_cache()
    cache.set("forever", {"a": 1}, NO_EXPIRATION)
    cache.set("short", "value", 1)
    cache.set("long", 42, 3600)
    cache.save_file(path)
    clock.advance(2)


class TestParseArgs:
    """Test argument parsing."""

    def test_inspect_path(self):
        args = parse_args(["inspect", "snap.bin"])
        assert args.command == "inspect"
        assert args.path == "snap.bin"
        assert args.debug is False

    def test_prune_output(self):
        args = parse_args(["--debug", "prune", "in.bin", "-o", "out.bin"])
        assert args.command == "prune"
        assert args.path == "in.bin"
        assert args.output == "out.bin"
        assert args.debug is True


class TestInspect:
    """Test the inspect command."""

    def test_inspect_lists_live_entries(self, make_cache, tmp_path, clock, capsys):
        """Test inspect prints live keys and skips expired ones."""
        path = tmp_path / "cache.snapshot"
        write_snapshot(make_cache, path, clock)

        assert main(["inspect", str(path)]) == 0

        out = capsys.readouterr().out
        assert "2 live, 1 expired" in out
        assert "forever\tdict\tnever" in out
        assert "long\tint\t3598.0s" in out
        assert "short" not in out

    def test_inspect_missing_file(self, tmp_path):
        """Test inspect of a missing file fails with exit status 1."""
        assert main(["inspect", str(tmp_path / "missing.snapshot")]) == 1


class TestPrune:
    """Test the prune command."""

    def test_prune_in_place(self, make_cache, tmp_path, clock):
        """Test prune rewrites the snapshot without expired entries."""
        path = tmp_path / "cache.snapshot"
        write_snapshot(make_cache, path, clock)

        assert main(["prune", str(path)]) == 0

        restored = make_cache()
        restored.load_file(path)
        assert restored.count() == 2
        assert restored.get("forever") == ({"a": 1}, True)
        assert restored.get("long") == (42, True)

    def test_prune_to_output(self, make_cache, tmp_path, clock):
        """Test prune writes to --output and leaves the input untouched."""
        path = tmp_path / "cache.snapshot"
        output = tmp_path / "pruned.snapshot"
        write_snapshot(make_cache, path, clock)
        original = path.read_bytes()

        assert main(["prune", str(path), "-o", str(output)]) == 0

        assert path.read_bytes() == original
        restored = make_cache()
        restored.load_file(output)
        assert restored.count() == 2

    def test_prune_corrupt_file(self, tmp_path):
        """Test prune of a corrupt file fails with exit status 1."""
        path = tmp_path / "corrupt.snapshot"
        path.write_bytes(b"garbage")

        assert main(["prune", str(path)]) == 1

    def test_failed_prune_keeps_original(self, make_cache, tmp_path, clock, monkeypatch):
        """Test a prune whose write fails leaves the snapshot and directory as they were."""
        path = tmp_path / "cache.snapshot"
        write_snapshot(make_cache, path, clock)
        original = path.read_bytes()

        def failing_save(self, sink):
            sink.write(b"partial")
            raise EncodeError("cannot encode snapshot: disk full")

        monkeypatch.setattr(Cache, "save", failing_save)

        assert main(["prune", str(path)]) == 1

        assert path.read_bytes() == original
        assert sorted(p.name for p in tmp_path.iterdir()) == ["cache.snapshot"]

    def test_prune_replaces_in_place_without_leftovers(self, make_cache, tmp_path, clock):
        """Test a successful prune leaves only the rewritten snapshot behind."""
        path = tmp_path / "cache.snapshot"
        write_snapshot(make_cache, path, clock)

        assert main(["prune", str(path)]) == 0

        assert sorted(p.name for p in tmp_path.iterdir()) == ["cache.snapshot"]


class TestCorruptValues:
    """Test snapshots whose values fail to construct."""

    def test_inspect_bad_value_exits_with_error(self, tmp_path):
        """Test a snapshot whose value constructor fails is reported, not raised."""
        path = tmp_path / "cache.snapshot"
        path.write_bytes(snapshot.HEADER + pickle.dumps({"k": (BadFraction(), 0)}))

        assert main(["inspect", str(path)]) == 1

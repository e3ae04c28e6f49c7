from __future__ import annotations

import os
import stat
import tempfile
import time
import unittest
from datetime import datetime
from pathlib import Path

from tarback.errors import InvalidCutoffSpec, WalkAborted
from tarback.policy import FilterPolicy, resolve_cutoff
from tarback.walker import iter_tree, walk


def _fake_stat(mode: int, mtime: int):
    return os.stat_result((mode, 0, 0, 1, 0, 0, 0, mtime, mtime, mtime, float(mtime), float(mtime), float(mtime)))


FILE = stat.S_IFREG | 0o644
DIR = stat.S_IFDIR | 0o755


class FilterPolicyTests(unittest.TestCase):
    def setUp(self):
        self.policy = FilterPolicy(cutoff=1000, run_start=5000)

    def test_older_than_cutoff_rejected(self):
        self.assertFalse(self.policy.accepts(_fake_stat(FILE, 999)))
        self.assertFalse(self.policy.accepts(_fake_stat(DIR, 999)))

    def test_cutoff_is_inclusive(self):
        self.assertTrue(self.policy.accepts(_fake_stat(FILE, 1000)))
        self.assertTrue(self.policy.accepts(_fake_stat(DIR, 1000)))

    def test_files_touched_since_run_start_rejected(self):
        self.assertTrue(self.policy.accepts(_fake_stat(FILE, 4999)))
        self.assertFalse(self.policy.accepts(_fake_stat(FILE, 5000)))
        self.assertFalse(self.policy.accepts(_fake_stat(FILE, 6000)))

    def test_directories_touched_since_run_start_kept(self):
        self.assertTrue(self.policy.accepts(_fake_stat(DIR, 5000)))
        self.assertTrue(self.policy.accepts(_fake_stat(DIR, 6000)))

    def test_fractional_mtime_truncated(self):
        st = os.stat_result((FILE, 0, 0, 1, 0, 0, 0, 999, 999, 999, 999.0, 999.9, 999.0))
        self.assertFalse(self.policy.accepts(st))


class ResolveCutoffTests(unittest.TestCase):
    def test_none_is_epoch(self):
        self.assertEqual(resolve_cutoff(None), 0)

    def test_local_date(self):
        expected = int(time.mktime(datetime(2018, 12, 16, 10, 30, 5).timetuple()))
        self.assertEqual(resolve_cutoff("2018-12-16 10:30:05"), expected)

    def test_date_shaped_but_invalid(self):
        with self.assertRaises(InvalidCutoffSpec):
            resolve_cutoff("2018-13-45 10:30:05")

    def test_reference_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            ref = Path(tmp) / "ref"
            ref.write_text("x")
            os.utime(ref, (1_500_000_000, 1_500_000_000))
            self.assertEqual(resolve_cutoff(str(ref)), 1_500_000_000)

    def test_missing_reference_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(InvalidCutoffSpec):
                resolve_cutoff(os.path.join(tmp, "nope"))

    def test_sloppy_date_falls_back_to_file_lookup(self):
        with self.assertRaises(InvalidCutoffSpec):
            resolve_cutoff("2018/12/16")


class WalkerTests(unittest.TestCase):
    def run_with_tmpdir(self, func):
        with tempfile.TemporaryDirectory() as tmp:
            func(Path(tmp))

    def test_preorder_each_node_once(self):
        def scenario(tmp_path: Path):
            top = tmp_path / "top"
            (top / "b" / "c").mkdir(parents=True)
            (top / "a.txt").write_text("a")
            (top / "b" / "c" / "d.txt").write_text("d")
            (top / "b" / "e.txt").write_text("e")
            nodes = list(iter_tree(str(top)))
            rel = [n.path[len(str(tmp_path)) + 1:] for n in nodes]
            self.assertEqual(rel, ["top", "top/a.txt", "top/b", "top/b/c", "top/b/c/d.txt", "top/b/e.txt"])
            self.assertEqual([n.name for n in nodes], ["top", "a.txt", "b", "c", "d.txt", "e.txt"])
            self.assertEqual(nodes[0].base, len(str(tmp_path)) + 1)

        self.run_with_tmpdir(scenario)

    def test_symlinked_directory_not_descended(self):
        def scenario(tmp_path: Path):
            top = tmp_path / "top"
            (top / "real").mkdir(parents=True)
            (top / "real" / "f").write_text("f")
            try:
                os.symlink("real", top / "link")
            except (OSError, NotImplementedError):
                self.skipTest("symlinks not supported")
            nodes = {n.name: n for n in iter_tree(str(top))}
            self.assertIn("link", nodes)
            self.assertTrue(stat.S_ISLNK(nodes["link"].stat.st_mode))
            paths = [n.path for n in iter_tree(str(top))]
            self.assertNotIn(str(top / "link" / "f"), paths)

        self.run_with_tmpdir(scenario)

    def test_single_file_start(self):
        def scenario(tmp_path: Path):
            f = tmp_path / "only.txt"
            f.write_text("x")
            nodes = list(iter_tree(str(f)))
            self.assertEqual(len(nodes), 1)
            self.assertEqual(nodes[0].name, "only.txt")

        self.run_with_tmpdir(scenario)

    def test_abort_signal_stops_walk(self):
        def scenario(tmp_path: Path):
            top = tmp_path / "top"
            top.mkdir()
            for name in ("a", "b", "c"):
                (top / name).write_text(name)
            seen = []

            def visit(node):
                seen.append(node.name)
                return node.name == "b"

            with self.assertRaises(WalkAborted):
                walk(str(top), visit)
            self.assertEqual(seen, ["top", "a", "b"])

        self.run_with_tmpdir(scenario)

    def test_visit_exception_propagates(self):
        def scenario(tmp_path: Path):
            (tmp_path / "f").write_text("f")

            def visit(node):
                raise ValueError("boom")

            with self.assertRaises(ValueError):
                walk(str(tmp_path), visit)

        self.run_with_tmpdir(scenario)


if __name__ == "__main__":
    unittest.main()

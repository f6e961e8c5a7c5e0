# test_data_sources.py
import io
import json
import os
import shutil
import tempfile
import unittest
from unittest import mock

from config import GlobalConfig
from data_sources import DataSourceError, get_data_source
from data_sources.json_file import JsonFileDataSource
from data_sources.svnlook import (
    SvnlookDataSource,
    SvnlookDiffStream,
    parse_changed,
    parse_info,
)
from models import ChangeKind

SVNLOOK_INFO = "alice\n2024-01-02 10:00:00 +0800 (Tue, 02 Jan 2024)\n24\nFix BUG-12\n\nMore text\n\n"

SVNLOOK_CHANGED = (
    "U   trunk/src/foo.c\n"
    "A   trunk/docs/\n"
    "A   trunk/docs/README\n"
    "D   trunk/old.c\n"
    "_U  trunk/\n"
    "UU  trunk/Makefile\n"
)


class TestParsers(unittest.TestCase):

    def test_parse_changed(self):
        files = parse_changed(SVNLOOK_CHANGED)
        self.assertEqual(files[ChangeKind.MODIFIED], ["trunk/src/foo.c", "trunk/Makefile"])
        self.assertEqual(files[ChangeKind.ADDED], ["trunk/docs/", "trunk/docs/README"])
        self.assertEqual(files[ChangeKind.DELETED], ["trunk/old.c"])
        self.assertEqual(files[ChangeKind.PROPERTY_CHANGED], ["trunk/", "trunk/Makefile"])

    def test_parse_changed_skips_garbage(self):
        self.assertEqual(parse_changed("\nX\n"), {})

    def test_parse_info(self):
        author, date, message = parse_info(SVNLOOK_INFO)
        self.assertEqual(author, "alice")
        self.assertTrue(date.startswith("2024-01-02 10:00:00"))
        self.assertEqual(message, ["Fix BUG-12", "", "More text"])

    def test_parse_info_malformed(self):
        with self.assertRaises(DataSourceError):
            parse_info("alice\n")


class TestJsonFileDataSource(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmp_dir, "commit.json")

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def _write(self, data):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def test_full_commit(self):
        with open(os.path.join(self.tmp_dir, "r7.diff"), "wb") as f:
            f.write(b"Modified: a.c\n+x\n")
        self._write(
            {
                "revision": 7,
                "author": "bob",
                "date": "2024-03-01",
                "message": "Add feature\n\nBody",
                "files": {"modified": ["a.c"], "added": ["b.c"], "renamed": ["c.c"]},
                "diff_file": "r7.diff",
            }
        )
        source = JsonFileDataSource(self.path)
        self.assertTrue(source.validate())

        with self.assertLogs("data_sources.json_file", level="WARNING"):
            record = source.get_commit()

        self.assertEqual(record.revision, "7")
        self.assertEqual(record.message, ["Add feature", "", "Body"])
        self.assertEqual(record.files[ChangeKind.ADDED], ["b.c"])
        self.assertEqual(len(record.files), 2)

        diff = record.open_diff()
        try:
            self.assertEqual(list(diff), [b"Modified: a.c\n", b"+x\n"])
        finally:
            diff.close()

    def test_no_diff(self):
        self._write({"revision": "1", "author": "a", "date": "d", "message": ["one"]})
        record = JsonFileDataSource(self.path).get_commit()
        self.assertFalse(record.has_diff)
        self.assertFalse(record.has_files)
        self.assertEqual(record.message, ["one"])

    def test_missing_field(self):
        self._write({"revision": "1", "author": "a"})
        with self.assertRaises(DataSourceError):
            JsonFileDataSource(self.path).get_commit()

    def test_invalid_json(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{")
        with self.assertRaises(DataSourceError):
            JsonFileDataSource(self.path).get_commit()

    def test_validate_missing_file(self):
        self.assertFalse(JsonFileDataSource(os.path.join(self.tmp_dir, "x.json")).validate())


class TestSvnlookDataSource(unittest.TestCase):

    def setUp(self):
        self.repos = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.repos)

    def test_validate(self):
        self.assertTrue(SvnlookDataSource(self.repos, "3", GlobalConfig()).validate())
        self.assertFalse(SvnlookDataSource(self.repos, "HEAD", GlobalConfig()).validate())
        self.assertFalse(
            SvnlookDataSource(os.path.join(self.repos, "nope"), "3", GlobalConfig()).validate()
        )

    @mock.patch("data_sources.svnlook.run_svnlook")
    def test_get_commit(self, mock_run):
        outputs = {"info": SVNLOOK_INFO, "changed": SVNLOOK_CHANGED}
        mock_run.side_effect = lambda cfg, sub, repos, rev, context: outputs[sub]

        with mock.patch("data_sources.svnlook.subprocess.Popen") as mock_popen:
            record = SvnlookDataSource(self.repos, 3, GlobalConfig()).get_commit()
            # diff 只在打开时才启动子进程
            mock_popen.assert_not_called()

        self.assertEqual(record.revision, "3")
        self.assertEqual(record.author, "alice")
        self.assertEqual(record.first_line(), "Fix BUG-12")
        self.assertIn(ChangeKind.DELETED, record.files)
        self.assertTrue(record.has_diff)

    @mock.patch("data_sources.svnlook.run_svnlook", return_value=None)
    def test_svnlook_failure(self, _mock_run):
        with self.assertRaises(DataSourceError):
            SvnlookDataSource(self.repos, "3", GlobalConfig()).get_commit()


class TestSvnlookDiffStream(unittest.TestCase):

    def _popen(self, payload, returncode=0, running=False):
        proc = mock.Mock()
        proc.stdout = io.BytesIO(payload)
        proc.wait.return_value = returncode
        proc.poll.return_value = None if running else returncode
        return proc

    @mock.patch("data_sources.svnlook.subprocess.Popen")
    def test_reads_lines(self, mock_popen):
        mock_popen.return_value = self._popen(b"Modified: a\n+x\n")
        stream = SvnlookDiffStream(["svnlook", "diff", "/repo", "-r", "1"])
        self.assertEqual(list(stream), [b"Modified: a\n", b"+x\n"])
        stream.close()

    @mock.patch("data_sources.svnlook.subprocess.Popen")
    def test_non_zero_exit_raises_on_close(self, mock_popen):
        mock_popen.return_value = self._popen(b"+x\n", returncode=1)
        stream = SvnlookDiffStream(["svnlook"])
        list(stream)
        with self.assertRaises(OSError) as ctx:
            stream.close()
        self.assertIn("Child process exited: 1", str(ctx.exception))

    @mock.patch("data_sources.svnlook.subprocess.Popen")
    def test_early_close_terminates(self, mock_popen):
        proc = self._popen(b"+x\n+y\n", running=True)
        mock_popen.return_value = proc
        stream = SvnlookDiffStream(["svnlook"])
        next(iter(stream))
        stream.close()
        proc.terminate.assert_called_once_with()

    @mock.patch("data_sources.svnlook.subprocess.Popen")
    def test_early_close_after_sigpipe_is_quiet(self, mock_popen):
        proc = self._popen(b"+x\n+y\n", returncode=-13)
        mock_popen.return_value = proc
        stream = SvnlookDiffStream(["svnlook"])
        next(iter(stream))
        # 子进程已因管道关闭退出，不应报告失败
        stream.close()
        proc.terminate.assert_not_called()

    @mock.patch("data_sources.svnlook.subprocess.Popen")
    def test_terminated_child_is_quiet(self, mock_popen):
        proc = self._popen(b"+x\n", running=True)
        proc.wait.return_value = -15
        mock_popen.return_value = proc
        SvnlookDiffStream(["svnlook"]).close()
        proc.terminate.assert_called_once_with()

    @mock.patch("data_sources.svnlook.subprocess.Popen")
    def test_poll_happens_before_pipe_close(self, mock_popen):
        calls = []
        proc = mock.Mock()
        proc.stdout.close.side_effect = lambda: calls.append("close")
        proc.poll.side_effect = lambda: calls.append("poll")
        proc.wait.return_value = -15
        mock_popen.return_value = proc

        SvnlookDiffStream(["svnlook"]).close()
        self.assertEqual(calls, ["poll", "close"])

    @mock.patch("data_sources.svnlook.subprocess.Popen")
    def test_signal_after_full_read_raises(self, mock_popen):
        mock_popen.return_value = self._popen(b"+x\n", returncode=-9)
        stream = SvnlookDiffStream(["svnlook"])
        list(stream)
        with self.assertRaises(OSError):
            stream.close()


class TestFactory(unittest.TestCase):

    def test_json_source(self):
        source = get_data_source(GlobalConfig(), commit_json="c.json")
        self.assertIsInstance(source, JsonFileDataSource)

    def test_svnlook_source(self):
        source = get_data_source(GlobalConfig(), repos_path="/repo", revision="5")
        self.assertIsInstance(source, SvnlookDataSource)

    def test_missing_arguments(self):
        with self.assertRaises(ValueError):
            get_data_source(GlobalConfig(), repos_path="/repo")


if __name__ == "__main__":
    unittest.main()

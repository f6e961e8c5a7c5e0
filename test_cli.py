# test_cli.py
import io
import json
import os
import shutil
import tempfile
import unittest
from unittest import mock

import cli


class TestParser(unittest.TestCase):

    def test_repeatable_options(self):
        args = cli.setup_parser().parse_args(
            [
                "-p", "/repo", "-r", "5",
                "--ticket-map", "(a)=http://a/%s",
                "--ticket-map", "(b)=http://b/%s",
                "--filter", "Markdown",
                "--filter", "Watermark",
                "--trac-url", "http://trac",
            ]
        )
        overrides = cli.collect_overrides(args)
        self.assertEqual(overrides["ticket_map"], ["(a)=http://a/%s", "(b)=http://b/%s"])
        self.assertEqual(overrides["filters"], ["Markdown", "Watermark"])
        self.assertEqual(overrides["extra"], {"trac_url": "http://trac"})
        self.assertIsNone(overrides["revision_url"])
        self.assertFalse(overrides["linkify"])

    def test_diff_style_choices(self):
        with self.assertRaises(SystemExit):
            with mock.patch("sys.stderr", new_callable=io.StringIO):
                cli.setup_parser().parse_args(["--diff-style", "fancy"])

    def test_parse_recipients(self):
        self.assertEqual(cli.parse_recipients(" a@x.com, ,b@x.com"), ["a@x.com", "b@x.com"])
        self.assertEqual(cli.parse_recipients(None), [])


class TestRunCli(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.json_path = os.path.join(self.tmp_dir, "commit.json")
        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "revision": "9",
                    "author": "carol",
                    "date": "2024-05-05",
                    "message": "See BUG-3 at http://example.com",
                    "files": {"added": ["trunk/new.py"]},
                },
                f,
            )

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def run_cli(self, *argv):
        with mock.patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = cli.run_cli(list(argv))
        return code, stdout.getvalue()

    def test_stdout_output(self):
        code, out = self.run_cli(
            "--commit-json", self.json_path,
            "--stdout",
            "--linkize",
            "--ticket-map", r"\b(BUG-(\d+))\b=http://bugs/?id=%s",
        )
        self.assertEqual(code, 0)
        self.assertIn('<a href="http://bugs/?id=3">BUG-3</a>', out)
        self.assertIn('<a href="http://example.com">http://example.com</a>', out)
        self.assertIn("<h3>Added Paths</h3>", out)

    def test_project_config_file(self):
        config_path = os.path.join(self.tmp_dir, "config.json")
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump({"wrap_log": True, "subject_prefix": "[repo] "}, f)

        code, out = self.run_cli(
            "--commit-json", self.json_path, "-c", config_path, "--stdout"
        )
        self.assertEqual(code, 0)
        self.assertIn("<title>[repo] [9] See BUG-3 at http://example.com</title>", out)
        self.assertIn('<div id="logmsg">', out)

    def test_output_dir(self):
        out_dir = os.path.join(self.tmp_dir, "html")
        code, _ = self.run_cli("--commit-json", self.json_path, "-o", out_dir)
        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(os.path.join(out_dir, "CommitNotify_r9.html")))

    def test_conflicting_sources(self):
        code, _ = self.run_cli("--commit-json", self.json_path, "-p", "/repo")
        self.assertEqual(code, 1)

    def test_missing_source(self):
        code, _ = self.run_cli("-p", "/repo")
        self.assertEqual(code, 1)

    def test_invalid_configuration(self):
        code, out = self.run_cli(
            "--commit-json", self.json_path, "--revision-url", "http://svn/r/", "--stdout"
        )
        self.assertEqual(code, 2)
        self.assertEqual(out, "")

    def test_unknown_filter(self):
        code, _ = self.run_cli("--commit-json", self.json_path, "--filter", "Nope")
        self.assertEqual(code, 1)

    def test_unreadable_commit(self):
        code, _ = self.run_cli("--commit-json", os.path.join(self.tmp_dir, "none.json"))
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()

# test_orchestrator.py
import json
import os
import shutil
import tempfile
import unittest
from unittest import mock

from config import GlobalConfig
from context import RenderConfig
from data_sources import DataSourceError
from data_sources.json_file import JsonFileDataSource
from notifiers.email_notifier import EmailNotifier
from notifiers.factory import get_active_notifiers
from orchestrator import NotifyOrchestrator

DIFF_BYTES = b"Modified: trunk/a.c\n===\n@@ -1 +1 @@\n-old\n+new\n"


class OrchestratorTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.json_path = os.path.join(self.tmp_dir, "commit.json")
        with open(os.path.join(self.tmp_dir, "r7.diff"), "wb") as f:
            f.write(DIFF_BYTES)
        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "revision": "7",
                    "author": "bob",
                    "date": "2024-03-01 09:00:00",
                    "message": "Add feature\n\nDetails",
                    "files": {"modified": ["trunk/a.c"]},
                    "diff_file": "r7.diff",
                },
                f,
            )
        self.global_config = GlobalConfig()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def make(self, render_config, recipients=None, output_dir=None, source=None):
        return NotifyOrchestrator(
            self.global_config,
            source or JsonFileDataSource(self.json_path),
            render_config,
            recipients=recipients,
            output_dir=output_dir,
        )


class TestRun(OrchestratorTestCase):

    def test_renders_and_saves(self):
        out_dir = os.path.join(self.tmp_dir, "out")
        html = self.make(RenderConfig(with_diff=True), output_dir=out_dir).run()

        self.assertIn("<title>[7] Add feature</title>", html)
        self.assertIn('<a id="trunkac">Modified: trunk/a.c</a>', html)

        saved = os.path.join(out_dir, "CommitNotify_r7.html")
        with open(saved, "r", encoding="utf-8") as f:
            self.assertEqual(f.read(), html)

    def test_invalid_source(self):
        source = JsonFileDataSource(os.path.join(self.tmp_dir, "missing.json"))
        self.assertIsNone(self.make(RenderConfig(), source=source).run())

    def test_data_source_error(self):
        source = mock.Mock()
        source.validate.return_value = True
        source.get_commit.side_effect = DataSourceError("svnlook 失败")
        with self.assertLogs("orchestrator", level="ERROR"):
            self.assertIsNone(self.make(RenderConfig(), source=source).run())

    def test_truncation_warning(self):
        with self.assertLogs("orchestrator", level="WARNING") as logs:
            self.make(RenderConfig(with_diff=True, max_diff_length=25)).run()
        self.assertTrue(any("截断" in line for line in logs.output))

    def test_unknown_filter(self):
        with self.assertRaises(ValueError):
            self.make(RenderConfig(filters=["NoSuchFilter"]))

    def test_filters_loaded(self):
        html = self.make(RenderConfig(filters=["Watermark"])).run()
        self.assertIn("Sent by CommitNotify", html)


class TestNotifications(OrchestratorTestCase):

    def test_no_recipients_no_email(self):
        with mock.patch("notifiers.email_notifier.yagmail.SMTP") as mock_smtp:
            self.make(RenderConfig()).run()
        mock_smtp.assert_not_called()

    @mock.patch("notifiers.email_notifier.yagmail.SMTP")
    def test_email_sent(self, mock_smtp):
        config = RenderConfig(subject_prefix="[svn] ")
        html = self.make(config, recipients=["dev@example.com"]).run()

        send = mock_smtp.return_value.send
        send.assert_called_once()
        kwargs = send.call_args.kwargs
        self.assertEqual(kwargs["to"], ["dev@example.com"])
        self.assertEqual(kwargs["subject"], "[svn] [7] Add feature")
        self.assertEqual(kwargs["contents"], html)
        self.assertIsNone(kwargs["attachments"])
        self.assertFalse(kwargs["prettify_html"])
        self.assertEqual(kwargs["headers"], {"X-Mailer": "CommitNotify"})

    @mock.patch("notifiers.email_notifier.yagmail.SMTP")
    def test_attach_diff_exists_only_while_sending(self, mock_smtp):
        sent = {}

        def capture(**kwargs):
            (path,) = kwargs["attachments"]
            sent["path"] = path
            with open(path, "rb") as f:
                sent["content"] = f.read()

        mock_smtp.return_value.send.side_effect = capture
        config = RenderConfig(with_diff=True, attach_diff=True)
        html = self.make(config, recipients=["dev@example.com"]).run()

        self.assertNotIn('<div id="patch">', html)
        self.assertTrue(sent["path"].endswith("r7.diff"))
        self.assertEqual(sent["content"], DIFF_BYTES)
        # 投递结束后附件与临时目录都已删除
        self.assertFalse(os.path.exists(sent["path"]))
        self.assertFalse(os.path.exists(os.path.dirname(sent["path"])))

    @mock.patch("notifiers.email_notifier.yagmail.SMTP")
    def test_attachment_removed_when_send_fails(self, mock_smtp):
        paths = []

        def fail(**kwargs):
            paths.extend(kwargs["attachments"])
            raise RuntimeError("smtp down")

        mock_smtp.return_value.send.side_effect = fail
        config = RenderConfig(with_diff=True, attach_diff=True)
        self.make(config, recipients=["dev@example.com"]).run()

        self.assertEqual(len(paths), 1)
        self.assertFalse(os.path.exists(paths[0]))

    @mock.patch("notifiers.email_notifier.yagmail.SMTP")
    def test_send_failure_logged(self, mock_smtp):
        mock_smtp.return_value.send.side_effect = RuntimeError("smtp down")
        with self.assertLogs("orchestrator", level="ERROR"):
            html = self.make(RenderConfig(), recipients=["dev@example.com"]).run()
        # 投递失败不影响渲染结果
        self.assertIsNotNone(html)


class TestNotifierFactory(unittest.TestCase):

    def test_email_enabled_only_with_recipients(self):
        self.assertEqual(get_active_notifiers(GlobalConfig(), []), [])
        active = get_active_notifiers(GlobalConfig(), ["a@example.com"])
        self.assertEqual(len(active), 1)
        self.assertIsInstance(active[0], EmailNotifier)
        self.assertEqual(active[0].name, "Email (SMTP)")


if __name__ == "__main__":
    unittest.main()

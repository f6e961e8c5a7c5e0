# test_plugins.py
import io
import unittest

from config import GlobalConfig
from context import RenderConfig
from hooks import load_filters
from models import CommitRecord
from report_builder import Renderer


def render_with(filters, config, message):
    record = CommitRecord(revision="5", author="bob", date="2024-03-01", message=message)
    chain = load_filters(filters, config, GlobalConfig.PLUGINS_DIR)
    out = io.StringIO()
    Renderer(config, chain).render(record, out)
    return out.getvalue()


class TestMarkdownPlugin(unittest.TestCase):

    def test_renders_markdown_log(self):
        config = RenderConfig(filters=["Markdown"])
        html = render_with(["Markdown"], config, ["Fix **bold** thing", "", "- one", "- two"])

        self.assertIn('<div id="logmsg">\n<p>Fix <strong>bold</strong> thing</p>', html)
        self.assertIn("<li>one</li>", html)
        self.assertNotIn("<pre>", html)

    def test_raw_html_is_escaped(self):
        config = RenderConfig(filters=["Markdown"])
        html = render_with(["Markdown"], config, ["a <script>x</script> b"])
        self.assertIn("&lt;script&gt;", html)
        self.assertNotIn("<script>", html)

    def test_trac_links(self):
        config = RenderConfig(filters=["Markdown"], extra={"trac_url": "http://trac/"})
        html = render_with(["Markdown"], config, ["see r12 and [13], closes #7"])

        self.assertIn('<a href="http://trac/changeset/12">r12</a>', html)
        self.assertIn('<a href="http://trac/changeset/13">[13]</a>', html)
        self.assertIn('<a href="http://trac/ticket/7">#7</a>', html)

    def test_no_trac_url_leaves_references(self):
        config = RenderConfig(filters=["Markdown"])
        html = render_with(["Markdown"], config, ["see r12, closes #7"])
        self.assertIn("<p>see r12, closes #7</p>", html)


class TestWatermarkPlugin(unittest.TestCase):

    def test_injected_before_body_close(self):
        html = render_with(["Watermark"], RenderConfig(), ["msg"])
        self.assertIn("Sent by CommitNotify</p>\n</body>\n</html>\n", html)
        # 内容阶段不受影响
        self.assertIn("<pre>msg</pre>", html)


if __name__ == "__main__":
    unittest.main()

"""
工具函数测试：评论内容清洗、文件名清理、文件大小格式化
"""
import pytest

from models.attachment import format_file_size
from utils.security_utils import ContentSanitizer, sanitize_filename


@pytest.fixture
def sanitizer():
    return ContentSanitizer()


@pytest.mark.parametrize("raw, expected", [
    ("plain text", "plain text"),
    ("<script>alert('x')</script>safe", "safe"),
    ("<STYLE>body{}</STYLE><b>bold</b>", "<b>bold</b>"),
    ('<iframe src="https://evil.example"></iframe>ok', "ok"),
    ('<img src=x onerror="alert(1)">pic', "pic"),
    ('<strong class="x" style="color:red">hi</strong>', "<strong>hi</strong>"),
    ('<a href="https://example.com" onclick="x()">go</a>', '<a href="https://example.com">go</a>'),
    ('<a href="javascript:alert(1)">go</a>', "<a>go</a>"),
    ('<a href="java&#115;cript:alert(1)">go</a>', "<a>go</a>"),
    ('<a href="&#106;avascript:alert(1)">go</a>', "<a>go</a>"),
    ('<a href="java\tscript:alert(1)">go</a>', "<a>go</a>"),
    ('<a href=" JAVASCRIPT:alert(1)">go</a>', "<a>go</a>"),
    ('<a href="data:text/html;base64,PHNjcmlwdD4=">go</a>', "<a>go</a>"),
    ('<a href="vbscript:msgbox(1)">go</a>', "<a>go</a>"),
    ('<a href="ftp://files.example.com">go</a>', "<a>go</a>"),
    ('<a href="mailto:dev@example.com">mail</a>', '<a href="mailto:dev@example.com">mail</a>'),
    ('<a href="/projects/1?tab=tasks&amp;page=2">rel</a>', '<a href="/projects/1?tab=tasks&amp;page=2">rel</a>'),
    ("line<br/>break", "line<br>break"),
    ("<!-- hidden -->shown", "shown"),
    ("a < b", "a &lt; b"),
    ("5 > 3", "5 &gt; 3"),
])
def test_clean(sanitizer, raw, expected):
    assert sanitizer.clean(raw) == expected


def test_clean_empty(sanitizer):
    assert sanitizer.clean("") == ""
    assert sanitizer.clean(None) == ""


def test_custom_allowed_tags():
    sanitizer = ContentSanitizer(allowed_tags=["b"])

    assert sanitizer.clean("<b>x</b><i>y</i>") == "<b>x</b>y"


@pytest.mark.parametrize("name, expected", [
    ("report.pdf", "report.pdf"),
    ("../../etc/passwd", "passwd"),
    ("C:\\Users\\me\\photo.png", "photo.png"),
    ("dir/", "file"),
    ("", "file"),
])
def test_sanitize_filename(name, expected):
    assert sanitize_filename(name) == expected


@pytest.mark.parametrize("size, expected", [
    (0, "0.00 B"),
    (512, "512.00 B"),
    (1536, "1.50 KB"),
    (1024 * 1024, "1.00 MB"),
    (5 * 1024 ** 3, "5.00 GB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected

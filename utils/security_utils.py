"""安全工具模块

评论内容清洗：去除可执行标记，只保留少量格式化标签
"""
import html
import re
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class ContentSanitizer:
    """富文本过滤器

    - script / style / iframe / object / embed 连同内容整体删除
    - 白名单内的标签保留但去掉全部属性（a 标签只保留安全的 href）
    - 其他标签去掉，保留其中文字
    - 文本中游离的尖括号转义
    """

    SAFE_SCHEMES = ('http', 'https', 'mailto')
    DEFAULT_ALLOWED_TAGS = (
        'b', 'i', 'em', 'strong', 'u', 'p', 'br', 'ul', 'ol', 'li',
        'a', 'code', 'pre', 'blockquote'
    )
    VOID_TAGS = ('br',)

    def __init__(self, allowed_tags: Optional[Iterable[str]] = None):
        self.allowed_tags = set(allowed_tags or self.DEFAULT_ALLOWED_TAGS)

        # 危险元素（连同内容删除）
        self.dangerous_patterns = [
            re.compile(r'<\s*(script|style|iframe|object|embed)\b[^>]*>.*?<\s*/\s*\1\s*>', re.IGNORECASE | re.DOTALL),
            re.compile(r'<\s*(script|style|iframe|object|embed)\b[^>]*/?>', re.IGNORECASE),
            re.compile(r'<!--.*?-->', re.DOTALL),
        ]
        self.tag_pattern = re.compile(r'^<\s*(/?)\s*([a-zA-Z][a-zA-Z0-9]*)\b([^>]*)>$', re.DOTALL)
        self.href_pattern = re.compile(r'''href\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+))''', re.IGNORECASE)
        self.scheme_pattern = re.compile(r'^([a-zA-Z][a-zA-Z0-9+.-]*):')
        self.control_chars = re.compile(r'[\x00-\x20\x7f]+')

    def clean(self, raw: Optional[str]) -> str:
        """清洗文本，返回安全内容"""
        if not raw:
            return raw or ""

        sanitized = raw
        for pattern in self.dangerous_patterns:
            sanitized = pattern.sub('', sanitized)

        parts = re.split(r'(<[^<>]*>)', sanitized)
        cleaned = []
        for part in parts:
            if not part:
                continue
            if part.startswith('<') and part.endswith('>'):
                cleaned.append(self._clean_tag(part))
            else:
                cleaned.append(part.replace('<', '&lt;').replace('>', '&gt;'))

        result = ''.join(cleaned)
        if result != raw:
            logger.debug("评论内容已清洗")
        return result

    def _clean_tag(self, tag: str) -> str:
        match = self.tag_pattern.match(tag)
        if not match:
            return ''
        closing, name, attrs = match.group(1), match.group(2).lower(), match.group(3)
        if name not in self.allowed_tags:
            return ''
        if closing:
            return '' if name in self.VOID_TAGS else f'</{name}>'
        if name == 'a':
            href = self._safe_href(attrs)
            return f'<a href="{href}">' if href else '<a>'
        return f'<{name}>'

    def _safe_href(self, attrs: str) -> Optional[str]:
        match = self.href_pattern.search(attrs)
        if not match:
            return None
        href = next(group for group in match.groups() if group is not None)
        # 浏览器先解码实体再识别协议
        decoded = html.unescape(href).strip()
        compact = self.control_chars.sub('', decoded)
        scheme = self.scheme_pattern.match(compact)
        if scheme and scheme.group(1).lower() not in self.SAFE_SCHEMES:
            return None
        if not scheme and ':' in compact.split('/', 1)[0]:
            return None
        return html.escape(decoded, quote=True)


def sanitize_filename(file_name: str) -> str:
    """去掉路径成分，防止路径遍历"""
    name = re.split(r'[\\/]', file_name or '')[-1]
    name = name.replace('\x00', '').strip()
    return name or 'file'


# 全局清洗器实例
content_sanitizer = ContentSanitizer()


def get_sanitizer() -> ContentSanitizer:
    """内容清洗依赖"""
    return content_sanitizer

"""
Markup Converter
Notion 블록 트리를 하나의 마크다운 문자열로 변환합니다.
"""

from typing import Dict, List, Optional

from portfolio_content.utils import setup_logger

logger = setup_logger(__name__)

LIST_TYPES = {"bulleted_list_item", "numbered_list_item", "to_do"}

# Notion 언어명 -> 마크다운 코드 펜스 언어
LANG_MAP = {
    'plain text': 'text',
    'python': 'python',
    'javascript': 'javascript',
    'typescript': 'typescript',
    'java': 'java',
    'c': 'c',
    'c++': 'cpp',
    'c#': 'csharp',
    'go': 'go',
    'rust': 'rust',
    'ruby': 'ruby',
    'php': 'php',
    'swift': 'swift',
    'kotlin': 'kotlin',
    'scala': 'scala',
    'shell': 'bash',
    'bash': 'bash',
    'sql': 'sql',
    'html': 'html',
    'css': 'css',
    'json': 'json',
    'yaml': 'yaml',
    'xml': 'xml',
    'markdown': 'markdown',
    'mermaid': 'mermaid'
}

INDENT = "    "


def _plain(item: Dict) -> str:
    if 'plain_text' in item:
        return item.get('plain_text') or ''
    return item.get('text', {}).get('content', '')


def _wrap(text: str, marker: str) -> str:
    """마크다운 기호로 감싸기 (앞뒤 공백은 기호 바깥에 유지)"""
    stripped = text.strip()
    if not stripped:
        return text
    lead = text[:len(text) - len(text.lstrip())]
    trail = text[len(text.rstrip()):]
    return f"{lead}{marker}{stripped}{marker}{trail}"


def rich_text_to_markdown(rich_text: Optional[List[Dict]]) -> str:
    """rich text 배열을 서식(굵게, 기울임, 코드, 링크 등) 포함 마크다운으로 변환"""
    if not rich_text:
        return ""

    parts = []
    for item in rich_text:
        if item.get('type') == 'equation':
            parts.append(f"${item.get('equation', {}).get('expression', '')}$")
            continue

        text = _plain(item)
        annotations = item.get('annotations') or {}
        if annotations.get('code'):
            text = _wrap(text, '`')
        if annotations.get('bold'):
            text = _wrap(text, '**')
        if annotations.get('italic'):
            text = _wrap(text, '_')
        if annotations.get('strikethrough'):
            text = _wrap(text, '~~')

        href = item.get('href') or (item.get('text', {}).get('link') or {}).get('url')
        if href and text.strip():
            text = f"[{text}]({href})"
        parts.append(text)
    return "".join(parts)


def _indent(text: str, prefix: str = INDENT) -> str:
    return "\n".join(prefix + line if line else line for line in text.split("\n"))


def _file_url(data: Dict) -> str:
    """이미지/파일/동영상 블록의 URL (Notion 호스팅 또는 외부)"""
    ftype = data.get('type', '')
    return (data.get(ftype) or {}).get('url', '') if ftype else ''


class MarkupConverter:
    """Notion blocks -> markdown"""

    def convert(self, blocks: Optional[List[Dict]]) -> str:
        if not blocks:
            return ""
        return self._render_blocks(blocks).strip()

    def _render_blocks(self, blocks: List[Dict]) -> str:
        output = ""
        previous_list = False
        number = 0

        for block in blocks:
            btype = block.get('type')
            number = number + 1 if btype == 'numbered_list_item' else 0

            try:
                text = self._block_to_text(block, number)
            except (KeyError, TypeError, AttributeError, IndexError) as e:
                logger.warning(f"Could not convert {btype} block {block.get('id', '?')}: {e}")
                text = self._fallback_text(block)

            if not text:
                continue

            is_list = btype in LIST_TYPES
            if output:
                output += "\n" if (is_list and previous_list) else "\n\n"
            output += text
            previous_list = is_list

        return output

    def _children(self, block: Dict) -> str:
        children = block.get('children') or []
        return self._render_blocks(children) if children else ""

    def _fallback_text(self, block: Dict) -> str:
        """지원하지 않거나 깨진 블록의 일반 텍스트 (없으면 빈 문자열)"""
        data = block.get(block.get('type') or '', None)
        if isinstance(data, dict) and isinstance(data.get('rich_text'), list):
            return "".join(_plain(t) for t in data['rich_text'] if isinstance(t, dict))
        return ""

    def _block_to_text(self, block: Dict, number: int = 0) -> str:
        """블록 -> 마크다운 텍스트"""
        btype = block.get('type')
        if not btype or btype not in block:
            return ""
        data = block[btype]

        if btype == 'code':
            code_content = "".join(_plain(t) for t in data.get('rich_text', []))
            md_lang = LANG_MAP.get(data.get('language', 'plain text'), 'text')
            return f"```{md_lang}\n{code_content}\n```"

        if btype == 'image':
            url = _file_url(data)
            if not url:
                return ""
            alt = "".join(_plain(t) for t in data.get('caption', []))
            return f"![{alt}]({url})"

        if btype in ('video', 'file', 'pdf', 'audio'):
            url = _file_url(data)
            if not url:
                return ""
            caption = "".join(_plain(t) for t in data.get('caption', [])) or data.get('name') or btype
            return f"[{caption}]({url})"

        if btype in ('bookmark', 'embed', 'link_preview'):
            url = data.get('url', '')
            if not url:
                return ""
            caption = "".join(_plain(t) for t in data.get('caption', [])) or url
            return f"[{caption}]({url})"

        if btype == 'equation':
            return f"$$\n{data.get('expression', '')}\n$$"

        if btype == 'divider':
            return "---"

        if btype == 'table':
            return self._convert_table_to_markdown(block)

        if btype in ('column_list', 'column', 'synced_block'):
            return self._children(block)

        if btype in ('child_page', 'child_database', 'table_of_contents', 'breadcrumb'):
            return ""

        if 'rich_text' not in data:
            return self._fallback_text(block)

        text = rich_text_to_markdown(data['rich_text'])
        children = self._children(block)

        if btype == 'paragraph':
            return f"{text}\n\n{children}".strip() if children else text
        if btype in ('heading_1', 'heading_2', 'heading_3'):
            level = int(btype[-1])
            return f"{'#' * level} {text}"
        if btype in LIST_TYPES:
            if btype == 'bulleted_list_item':
                line = f"- {text}"
            elif btype == 'numbered_list_item':
                line = f"{max(number, 1)}. {text}"
            else:
                checkbox = '- [x]' if data.get('checked', False) else '- [ ]'
                line = f"{checkbox} {text}"
            return f"{line}\n{_indent(children)}" if children else line
        if btype == 'quote':
            body = f"{text}\n\n{children}" if children else text
            return _indent(body, "> ")
        if btype == 'callout':
            icon = (data.get('icon') or {}).get('emoji', '')
            head = f"{icon} {text}".strip()
            body = f"{head}\n\n{children}" if children else head
            return _indent(body, "> ")
        if btype == 'toggle':
            return f"<details>\n<summary>{text}</summary>\n\n{children}\n\n</details>"

        # 텍스트가 있는 알 수 없는 블록
        return text

    def _convert_table_to_markdown(self, block: Dict) -> str:
        """Notion 테이블 (행은 자식 블록) -> 마크다운 테이블"""
        rows = [row for row in block.get('children') or [] if row.get('type') == 'table_row']
        if not rows:
            return ""

        markdown_rows = []
        for i, row_block in enumerate(rows):
            cells = row_block['table_row'].get('cells', [])
            cell_texts = [rich_text_to_markdown(cell).strip().replace("|", "\\|") for cell in cells]
            markdown_rows.append("| " + " | ".join(cell_texts) + " |")

            # 첫 행은 헤더
            if i == 0:
                markdown_rows.append("|" + "|".join(" --- " for _ in cell_texts) + "|")

        return "\n".join(markdown_rows)

import logging
from typing import Any

import mistune

logger = logging.getLogger(__name__)

_INLINE_MARKS = {
    "strong": {"type": "strong"},
    "emphasis": {"type": "em"},
    "strikethrough": {"type": "strike"},
}


def empty_document() -> dict[str, Any]:
    return {"type": "doc", "version": 1, "content": []}


class AdfRenderer:
    """
    마크다운 → Atlassian Document Format(ADF) 변환기.

    mistune의 AST 출력을 순회하며 Jira Cloud API v3가 요구하는
    description 문서 구조로 변환합니다.
    """

    def __init__(self) -> None:
        self._md = mistune.create_markdown(
            renderer="ast",
            plugins=["table", "strikethrough"],
        )

    def to_adf(self, markdown: str | None) -> dict[str, Any]:
        if not markdown or not markdown.strip():
            return empty_document()
        tokens = self._md(markdown.strip())
        content = self._blocks(tokens)
        logger.debug("ADF 변환 완료: 블록 %d개", len(content))
        return {"type": "doc", "version": 1, "content": content}

    # ------------------------------------------------------------------
    # Block nodes
    # ------------------------------------------------------------------

    def _blocks(self, tokens: list[dict]) -> list[dict]:
        nodes = []
        for token in tokens:
            node = self._block(token)
            if node is not None:
                nodes.append(node)
        return nodes

    def _block(self, token: dict) -> dict | None:
        kind = token.get("type")
        if kind in ("paragraph", "block_text"):
            inline = self._inline(token.get("children", []))
            return {"type": "paragraph", "content": inline} if inline else None
        if kind == "heading":
            level = min(max(token.get("attrs", {}).get("level", 1), 1), 6)
            return {
                "type": "heading",
                "attrs": {"level": level},
                "content": self._inline(token.get("children", [])),
            }
        if kind == "list":
            return self._list(token)
        if kind == "block_code":
            code = token.get("raw", "").rstrip("\n")
            language = (token.get("attrs", {}).get("info") or "").strip().split(" ")[0]
            node: dict[str, Any] = {"type": "codeBlock", "content": []}
            if language:
                node["attrs"] = {"language": language}
            if code:
                node["content"] = [{"type": "text", "text": code}]
            return node
        if kind == "block_quote":
            return {"type": "blockquote", "content": self._blocks(token.get("children", []))}
        if kind == "thematic_break":
            return {"type": "rule"}
        if kind == "table":
            return self._table(token)
        if kind == "block_html":
            raw = token.get("raw", "").strip()
            return {"type": "paragraph", "content": [{"type": "text", "text": raw}]} if raw else None
        # blank_line 등
        return None

    def _list(self, token: dict) -> dict:
        attrs = token.get("attrs", {})
        items = []
        for item in token.get("children", []):
            content = self._blocks(item.get("children", []))
            if not content:
                content = [{"type": "paragraph", "content": []}]
            items.append({"type": "listItem", "content": content})
        if attrs.get("ordered"):
            return {
                "type": "orderedList",
                "attrs": {"order": attrs.get("start", 1) or 1},
                "content": items,
            }
        return {"type": "bulletList", "content": items}

    def _table(self, token: dict) -> dict:
        rows = []
        for section in token.get("children", []):
            if section.get("type") == "table_head":
                rows.append(self._table_row(section.get("children", []), header=True))
            elif section.get("type") == "table_body":
                for row in section.get("children", []):
                    rows.append(self._table_row(row.get("children", []), header=False))
        return {"type": "table", "content": rows}

    def _table_row(self, cells: list[dict], header: bool) -> dict:
        cell_type = "tableHeader" if header else "tableCell"
        return {
            "type": "tableRow",
            "content": [
                {
                    "type": cell_type,
                    "content": [{"type": "paragraph", "content": self._inline(cell.get("children", []))}],
                }
                for cell in cells
            ],
        }

    # ------------------------------------------------------------------
    # Inline nodes
    # ------------------------------------------------------------------

    def _inline(self, tokens: list[dict], marks: tuple[dict, ...] = ()) -> list[dict]:
        nodes: list[dict] = []
        for token in tokens:
            kind = token.get("type")
            if kind == "text":
                nodes.extend(self._text(token.get("raw", ""), marks))
            elif kind == "codespan":
                nodes.extend(self._text(token.get("raw", ""), marks + ({"type": "code"},)))
            elif kind in _INLINE_MARKS:
                nodes.extend(self._inline(token.get("children", []), marks + (_INLINE_MARKS[kind],)))
            elif kind == "link":
                link = {"type": "link", "attrs": {"href": token.get("attrs", {}).get("url", "")}}
                nodes.extend(self._inline(token.get("children", []), marks + (link,)))
            elif kind in ("softbreak", "linebreak"):
                nodes.append({"type": "hardBreak"})
            elif kind == "image":
                url = token.get("attrs", {}).get("url", "")
                nodes.extend(self._text(url, marks + ({"type": "link", "attrs": {"href": url}},)))
            elif kind == "inline_html":
                nodes.extend(self._text(token.get("raw", ""), marks))
        return nodes

    @staticmethod
    def _text(text: str, marks: tuple[dict, ...]) -> list[dict]:
        if not text:
            return []
        node: dict[str, Any] = {"type": "text", "text": text}
        if marks:
            node["marks"] = [dict(mark) for mark in marks]
        return [node]

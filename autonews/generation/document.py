"""Conversion of body blocks into the rich-text block tree stored on articles."""

from typing import Any, Dict, Iterable, List

from .models import BodyBlock

RTL_LANGUAGES = frozenset({"ar", "he", "fa", "ur", "ps", "yi", "dv", "ku", "sd", "ug"})


def text_direction(language: str) -> str:
    """Return 'rtl' for right-to-left languages, 'ltr' otherwise."""
    base = (language or "").lower().split("-", 1)[0]
    return "rtl" if base in RTL_LANGUAGES else "ltr"


def _text_node(text: str) -> Dict[str, Any]:
    return {
        "type": "text",
        "text": text,
        "format": 0,
        "detail": 0,
        "mode": "normal",
        "style": "",
        "version": 1,
    }


def _block_node(block: BodyBlock, direction: str) -> Dict[str, Any]:
    node: Dict[str, Any] = {
        "type": block.type,
        "children": [_text_node(block.text)],
        "direction": direction,
        "format": "",
        "indent": 0,
        "version": 1,
    }
    if block.type == "heading":
        node["tag"] = f"h{block.level}"
    else:
        node["textFormat"] = 0
        node["textStyle"] = ""
    return node


def convert_to_document(blocks: Iterable[BodyBlock], direction: str = "rtl") -> Dict[str, Any]:
    """
    Build a Lexical-style editor state from body blocks.

    Pure and deterministic: the same blocks and direction always give an
    equal tree. Blocks with blank text are skipped.

    Args:
        blocks: Body blocks in reading order
        direction: 'rtl' or 'ltr'

    Returns:
        Editor state with a single root node
    """
    if direction not in ("rtl", "ltr"):
        raise ValueError(f"Unknown text direction: {direction}")

    children: List[Dict[str, Any]] = []
    for block in blocks:
        text = block.text.strip()
        if not text:
            continue
        children.append(_block_node(block.model_copy(update={"text": text}), direction))

    return {
        "root": {
            "type": "root",
            "children": children,
            "direction": direction,
            "format": "",
            "indent": 0,
            "version": 1,
        }
    }

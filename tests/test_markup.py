"""
Markup converter tests - Notion blocks -> markdown.
"""

from helpers import block, image_block, rt
from portfolio_content.markup import MarkupConverter, rich_text_to_markdown


def convert(blocks):
    return MarkupConverter().convert(blocks)


def test_headings_and_paragraphs():
    md = convert([
        block("heading_1", "Title"),
        block("paragraph", "Intro text."),
        block("heading_2", "Section"),
        block("heading_3", "Sub"),
    ])
    assert md == "# Title\n\nIntro text.\n\n## Section\n\n### Sub"


def test_consecutive_list_items_are_single_spaced_and_numbered():
    md = convert([
        block("numbered_list_item", "Preheat"),
        block("numbered_list_item", "Mix"),
        block("numbered_list_item", "Bake"),
        block("paragraph", "Enjoy."),
        block("bulleted_list_item", "Salt"),
        block("bulleted_list_item", "Pepper"),
    ])
    assert md == "1. Preheat\n2. Mix\n3. Bake\n\nEnjoy.\n\n- Salt\n- Pepper"


def test_nested_list_children_are_indented():
    md = convert([
        block("bulleted_list_item", "Dry", children=[
            block("bulleted_list_item", "Flour"),
            block("bulleted_list_item", "Sugar"),
        ]),
    ])
    assert md == "- Dry\n    - Flour\n    - Sugar"


def test_to_do_items():
    md = convert([
        block("to_do", "Buy eggs", checked=True),
        block("to_do", "Buy milk", checked=False),
    ])
    assert md == "- [x] Buy eggs\n- [ ] Buy milk"


def test_code_block_language_mapping():
    md = convert([block("code", "print('hi')", language="python")])
    assert md == "```python\nprint('hi')\n```"

    md = convert([block("code", "ls", language="shell")])
    assert md == "```bash\nls\n```"


def test_image_uses_caption_as_alt_text():
    md = convert([image_block("https://example.com/a.png", caption="Finished loaf")])
    assert md == "![Finished loaf](https://example.com/a.png)"


def test_quote_callout_divider():
    md = convert([
        block("quote", "Quoted"),
        block("divider"),
        block("callout", "Careful", icon={"emoji": "🔥"}),
    ])
    assert md == "> Quoted\n\n---\n\n> 🔥 Careful"


def test_table_rows_render_with_header_separator():
    rows = [
        {"type": "table_row", "table_row": {"cells": [[rt("Item")], [rt("Qty")]]}},
        {"type": "table_row", "table_row": {"cells": [[rt("Flour")], [rt("2")]]}},
    ]
    table = {"type": "table", "id": "t", "table": {"table_width": 2}, "has_children": True,
             "children": rows}
    assert convert([table]) == "| Item | Qty |\n| --- | --- |\n| Flour | 2 |"


def test_rich_text_annotations_and_links():
    text = rich_text_to_markdown([
        rt("Bold", bold=True),
        rt(" and "),
        rt("code", code=True),
        rt(" "),
        {**rt("link"), "href": "https://example.com"},
    ])
    assert text == "**Bold** and `code` [link](https://example.com)"


def test_annotation_keeps_whitespace_outside_markers():
    assert rich_text_to_markdown([rt("word ", italic=True), rt("next")]) == "_word_ next"


def test_unsupported_block_with_text_passes_through():
    weird = {"type": "mystery", "id": "m", "mystery": {"rich_text": [rt("still here")]}}
    assert convert([weird]) == "still here"


def test_unsupported_block_without_text_is_omitted():
    md = convert([
        {"type": "unsupported", "id": "u", "unsupported": {}},
        block("paragraph", "Kept"),
    ])
    assert md == "Kept"


def test_malformed_block_degrades_without_failing_record():
    broken = {"type": "table_row", "id": "x", "table_row": None}
    broken_table = {"type": "table", "id": "t", "table": {}, "children": [
        {"type": "table_row", "table_row": None},
    ]}
    md = convert([broken_table, block("paragraph", "After")])
    assert md == "After"
    assert convert([broken]) == ""


def test_empty_input():
    assert convert([]) == ""
    assert convert(None) == ""

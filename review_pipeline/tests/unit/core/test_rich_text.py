import pytest

from review_pipeline.core.rich_text import (
    collect_text_leaves,
    create_rich_text_from_plain,
    extract_plain_text,
    sync_rich_text_format,
)
from review_pipeline.tests.helpers import formatted_paragraph, paragraphs


class TestExtractPlainText:
    def test_paragraphs_joined_with_newlines(self):
        assert extract_plain_text(paragraphs("First line", "Second line")) == "First line\nSecond line"

    def test_inline_runs_are_concatenated(self):
        doc = formatted_paragraph((1, "Bold"), (0, " and "), (2, "italic"))
        assert extract_plain_text(doc) == "Bold and italic"

    @pytest.mark.parametrize("doc", [None, {}, {"root": {}}, {"root": {"children": []}}, "not a doc"])
    def test_missing_content_is_empty(self, doc):
        assert extract_plain_text(doc) == ""

    def test_result_is_trimmed(self):
        assert extract_plain_text(paragraphs("", "  padded  ", "")) == "padded"


class TestCreateRichText:
    def test_one_paragraph_per_line(self):
        doc = create_rich_text_from_plain("One\nTwo")

        children = doc["root"]["children"]
        assert [c["type"] for c in children] == ["paragraph", "paragraph"]
        assert children[1]["children"][0] == {"type": "text", "text": "Two", "version": 1}
        assert doc["root"]["type"] == "root"

    def test_empty_string_gives_single_empty_paragraph(self):
        doc = create_rich_text_from_plain("")

        assert len(doc["root"]["children"]) == 1
        assert extract_plain_text(doc) == ""

    @pytest.mark.parametrize("text", ["Hello", "Line one\nLine two", "Ümlaut - dash\n\nafter blank"])
    def test_plain_text_survives_a_trip_through_rich_text(self, text):
        assert extract_plain_text(create_rich_text_from_plain(text)) == text.strip()

    @pytest.mark.parametrize(
        "doc",
        [
            formatted_paragraph((1, "Bold"), (0, " then "), (2, "italic")),
            {"root": {"children": [
                {"type": "heading", "children": [{"type": "text", "text": "Verdict"}]},
                {"type": "list", "children": [
                    {"type": "listitem", "children": [{"type": "text", "text": "Pacing"}]},
                    {"type": "listitem", "children": [
                        {"type": "text", "text": "Prose, "},
                        {"type": "link", "children": [{"type": "text", "format": 1, "text": "mostly"}]},
                    ]},
                ]},
            ]}},
            {"root": {"children": [
                {"type": "quote", "children": [
                    {"type": "text", "text": "Fear is"},
                    {"type": "linebreak"},
                    {"type": "text", "text": "the mind-killer"},
                ]},
                {"type": "paragraph", "children": [{"type": "text", "text": ""}]},
                {"type": "paragraph", "children": [{"type": "text", "text": "after a blank"}]},
            ]}},
            {"root": {"children": [
                {"type": "paragraph", "children": []},
                {"type": "paragraph", "children": [{"type": "text", "text": "  "}]},
                {"type": "paragraph", "children": [{"type": "text", "text": " middle "}]},
                {"type": "paragraph", "children": [{"type": "text", "text": ""}]},
            ]}},
            {"root": {"children": [
                {"type": "paragraph", "children": [{"type": "text", "text": "first\nsecond"}]},
                {"type": "paragraph", "children": [{"type": "text", "text": "Ümlaut"}]},
            ]}},
        ],
        ids=["inline-runs", "nested-list", "quote-and-empty-leaf", "blank-edges", "embedded-newline"],
    )
    def test_nested_text_survives_a_trip_through_rich_text(self, doc):
        text = extract_plain_text(doc)

        assert extract_plain_text(create_rich_text_from_plain(text)) == text


class TestSyncFormat:
    def test_source_formatting_with_target_text(self):
        source = formatted_paragraph((1, "Hello"), (0, " world"))
        target = {"root": {"children": [
            {"type": "paragraph", "children": [{"type": "text", "text": "Halo"}, {"type": "text", "text": " dunia"}]}
        ]}}

        result = sync_rich_text_format(source, target)

        runs = result["root"]["children"][0]["children"]
        assert [(r["format"], r["text"]) for r in runs] == [(1, "Halo"), (0, " dunia")]

    def test_extra_source_leaves_keep_source_text(self):
        source = paragraphs("one", "two", "three")
        target = paragraphs("satu")

        result = sync_rich_text_format(source, target)

        assert collect_text_leaves(result) == ["satu", "two", "three"]

    def test_surplus_target_text_is_dropped(self):
        result = sync_rich_text_format(paragraphs("one"), paragraphs("satu", "dua"))

        assert collect_text_leaves(result) == ["satu"]

    def test_source_is_not_mutated(self):
        source = paragraphs("one")

        sync_rich_text_format(source, paragraphs("satu"))

        assert collect_text_leaves(source) == ["one"]

    def test_missing_inputs(self):
        source = paragraphs("one")

        assert sync_rich_text_format(None, paragraphs("satu")) is None
        assert sync_rich_text_format(source, None) == source
        assert sync_rich_text_format(source, {"no": "root"}) == source

"""
Tests for rich_text_extraction/extractor.py extraction engine.

Covers each recognizer, cross-kind precedence, deduplication and the
edge cases around empty or non-string input.
"""
import pytest

from rich_text_extraction.extractor import excerpt, extract, extract_all, find_matches
from rich_text_extraction.models import ExtractionKind, Match


class TestLinks:
    """Test link extraction."""

    def test_finds_http_and_https(self):
        text = "See http://example.com and https://example.org/docs today"
        assert extract(text, "links") == ["http://example.com", "https://example.org/docs"]

    def test_strips_trailing_sentence_punctuation(self):
        assert extract("Go to https://example.com/path.", "links") == ["https://example.com/path"]
        assert extract("Really? https://example.com!", "links") == ["https://example.com"]

    def test_strips_unbalanced_closing_paren(self):
        assert extract("(see https://example.com/a)", "links") == ["https://example.com/a"]

    def test_keeps_balanced_parens(self):
        url = "https://en.wikipedia.org/wiki/Python_(programming_language)"
        assert extract(f"Read {url}.", "links") == [url]

    def test_ignores_scheme_without_host(self):
        assert extract("broken http:// link", "links") == []

    def test_keeps_query_and_fragment(self):
        url = "https://example.com/search?q=python#results"
        assert extract(url, "links") == [url]


class TestSymbols:
    """Test mentions and hashtags."""

    def test_mentions(self):
        assert extract("cc @bob, @carol and @bob", "mentions") == ["bob", "carol"]

    def test_hashtags(self):
        assert extract("#ruby and #python_3 rock #ruby", "hashtags") == ["ruby", "python_3"]

    def test_hashtag_needs_word_boundary(self):
        assert extract("issue#12 is not a tag", "hashtags") == []

    def test_html_entity_is_not_a_hashtag(self):
        assert extract("it&#39;s #fine", "hashtags") == ["fine"]

    def test_email_local_part_is_not_a_mention(self):
        assert extract("write to alice@example.com", "mentions") == []


class TestEmails:
    """Test email extraction."""

    def test_finds_addresses(self):
        text = "Contact alice@example.com or bob.smith@mail.example.org."
        assert extract(text, "emails") == ["alice@example.com", "bob.smith@mail.example.org"]

    def test_requires_top_level_domain(self):
        assert extract("alice@localhost", "emails") == []


class TestPhonesAndDates:
    """Test phone numbers and dates."""

    def test_international_phone(self):
        assert extract("Call +1 (555) 123-4567 today", "phones") == ["+1 (555) 123-4567"]

    def test_plain_phone(self):
        assert extract("Office: 555-123-4567", "phones") == ["555-123-4567"]

    def test_short_numbers_are_not_phones(self):
        assert extract("Order 12345 shipped", "phones") == []

    def test_dates(self):
        assert extract("Due 2024-01-15 or 01/15/2024", "dates") == ["2024-01-15", "01/15/2024"]

    def test_dates_are_not_phones(self):
        assert extract("Due 2024-01-15 or 01/15/2024", "phones") == []

    def test_space_separated_phones_are_split(self):
        text = "Call 555-123-4567 555-987-6543 today"
        assert extract(text, "phones") == ["555-123-4567", "555-987-6543"]

    def test_phone_followed_by_number(self):
        assert extract("Call 555-123-4567 7 days a week", "phones") == ["555-123-4567"]

    def test_phone_next_to_date(self):
        text = "Call 5551234 2024-01-15"
        assert extract(text, "phones") == ["5551234"]
        assert extract(text, "dates") == ["2024-01-15"]

    def test_phone_between_dates(self):
        text = "From 2024-01-15 call 5551234 until 2024-02-01"
        assert extract(text, "phones") == ["5551234"]
        assert extract(text, "dates") == ["2024-01-15", "2024-02-01"]

    @pytest.mark.parametrize("phone", ["555 123 4567", "+44 20 7946 0958"])
    def test_spaced_phone_stays_whole(self, phone):
        assert extract(f"Ring {phone} now", "phones") == [phone]

    def test_split_phone_spans(self):
        text = "555-123-4567 555-987-6543"
        matches = find_matches(text, "phones")
        assert [(m.start, m.end) for m in matches] == [(0, 12), (13, 25)]


class TestImages:
    """Test image URL extraction."""

    def test_only_image_extensions(self):
        text = "Logo: https://cdn.example.com/logo.PNG and https://example.com/page"
        assert extract(text, "images") == ["https://cdn.example.com/logo.PNG"]

    def test_image_is_also_a_link(self):
        text = "Logo: https://cdn.example.com/logo.png"
        assert extract(text, "links") == ["https://cdn.example.com/logo.png"]
        assert extract(text, "images") == ["https://cdn.example.com/logo.png"]

    def test_extension_must_end_the_path(self):
        assert extract("https://example.com/logo.png/view", "images") == []


class TestMarkdown:
    """Test markdown tables and code."""

    def test_table(self):
        text = "Intro\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\nAfter"
        assert extract(text, "markdown_tables") == ["| a | b |\n|---|---|\n| 1 | 2 |"]

    def test_pipe_line_without_separator_is_not_a_table(self):
        assert extract("| just | pipes |\nnext line", "markdown_tables") == []

    def test_inline_and_fenced_code(self):
        text = "Run `pip install x` then\n```\nprint(1)\n```"
        assert extract(text, "markdown_code") == ["`pip install x`", "```\nprint(1)\n```"]

    def test_links_inside_code_are_still_links(self):
        """Markdown constructs contain entities instead of hiding them."""
        text = "```\ncurl https://example.com\n```"
        assert extract(text, "links") == ["https://example.com"]
        assert len(extract(text, "markdown_code")) == 1


class TestPrecedence:
    """Test that higher-ranked spans are never reported again."""

    def test_hashtag_inside_url_fragment(self):
        text = "Docs at https://example.com/#anchor and #real"
        assert extract(text, "links") == ["https://example.com/#anchor"]
        assert extract(text, "hashtags") == ["real"]

    def test_mention_inside_url(self):
        assert extract("https://example.com/?u=@bob", "mentions") == []

    def test_email_inside_url(self):
        assert extract("https://example.com/?to=alice@example.com", "emails") == []

    def test_phone_inside_url(self):
        assert extract("https://example.com/?tel=5551234567", "phones") == []

    def test_date_inside_url(self):
        assert extract("https://example.com/2024-01-15/post", "dates") == []

    def test_extract_all_agrees_with_extract(self):
        text = ("Visit https://example.com/#top #ruby @alice, mail bob@example.com, "
                "call 555-123-4567 on 2024-01-15")
        results = extract_all(text)
        for kind in ExtractionKind:
            assert results[kind.value] == extract(text, kind)


class TestEngineContract:
    """Test general engine behavior."""

    def test_example_sentence(self):
        text = "Visit https://example.com #ruby @alice"
        assert extract(text, ExtractionKind.LINKS) == ["https://example.com"]
        assert extract(text, ExtractionKind.HASHTAGS) == ["ruby"]
        assert extract(text, ExtractionKind.MENTIONS) == ["alice"]

    def test_idempotent(self):
        text = "#a @b https://example.com #a"
        assert extract(text, "hashtags") == extract(text, "hashtags")

    def test_no_duplicates(self):
        values = extract("#a #b #a #c #b", "hashtags")
        assert values == ["a", "b", "c"]
        assert len(values) == len(set(values))

    @pytest.mark.parametrize("text", [None, "", 42, b"#bytes"])
    def test_empty_or_non_string_input(self, text):
        assert extract(text, "hashtags") == []

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError):
            extract("text", "bogus")

    def test_unknown_kind_raises_even_for_empty_text(self):
        with pytest.raises(ValueError):
            extract(None, "bogus")

    def test_find_matches_reports_spans(self):
        assert find_matches("Hi #ruby", "hashtags") == [Match("ruby", 3, 8)]

    def test_find_matches_keeps_duplicates(self):
        assert len(find_matches("#a #a", "hashtags")) == 2


class TestExtractAll:
    """Test multi-kind extraction."""

    def test_returns_every_kind_by_default(self):
        results = extract_all("Visit https://example.com #ruby @alice")
        assert set(results) == {kind.value for kind in ExtractionKind}
        assert results["links"] == ["https://example.com"]
        assert results["emails"] == []

    def test_selected_kinds_only(self):
        results = extract_all("#ruby @alice", ["hashtags", ExtractionKind.MENTIONS])
        assert results == {"hashtags": ["ruby"], "mentions": ["alice"]}

    def test_empty_text(self):
        assert extract_all(None, ["links"]) == {"links": []}

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError):
            extract_all("text", ["links", "bogus"])


class TestExcerpt:
    """Test excerpt()."""

    def test_short_text_unchanged(self):
        assert excerpt("short", 300) == "short"

    def test_cuts_and_marks(self):
        assert excerpt("hello world", 5) == "hello…"

    def test_trailing_whitespace_trimmed_before_marker(self):
        assert excerpt("hello world", 6) == "hello…"

    def test_default_length(self):
        text = "x" * 500
        assert excerpt(text) == "x" * 300 + "…"

    def test_non_string(self):
        assert excerpt(None) == ""

import logging
import textwrap

import pytest

from wikinews.errors import ExtractError, NoContentError
from wikinews.extractor import SectionExtractor, extract, strip_weekday
from wikinews.models import Feed, Header, Post, RawDocument


def test_extract_full_portal_in_document_order(portal_html):
    feed = extract(portal_html)

    assert feed == [
        Header("Topics in the News"),
        Post(
            '<b><a href="https://en.m.wikipedia.org/wiki/Flood">Flooding</a></b> kills hundreds.'
        ),
        Post('An <a href="https://en.m.wikipedia.org/wiki/Election">election</a> is held.'),
        Header("Ongoing"),
        Post('<a href="https://en.m.wikipedia.org/wiki/War">War</a>'),
        Header("Recent Deaths"),
        Post('<a href="https://en.m.wikipedia.org/wiki/Jane_Doe">Jane Doe</a>'),
        Post('<a href="https://example.org/john">John Roe</a>'),
        Header("24 July 2025"),
        Post('First <a href="https://en.m.wikipedia.org/wiki/Item_1">item</a>.'),
        Post("Second <i>item</i>."),
    ]
    assert len(feed.headers) == 4


def test_extract_accepts_raw_document(portal_html):
    document = RawDocument(url="https://example.org", text=portal_html)

    assert extract(document) == extract(portal_html)


def test_missing_recent_deaths_is_skipped(portal_html, caplog):
    html = portal_html.replace('aria-labelledby="Recent_deaths"', "")
    caplog.set_level(logging.WARNING, logger="wikinews.extractor")

    feed = extract(html)

    assert "Recent Deaths" not in [header.text for header in feed.headers]
    assert [header.text for header in feed.headers] == [
        "Topics in the News",
        "Ongoing",
        "24 July 2025",
    ]
    assert "Section 'Recent Deaths' not found" in caplog.text


def test_section_without_list_is_skipped():
    html = """
        <div aria-labelledby="Topics_in_the_news"><p>No list here</p></div>
        <div aria-labelledby="Ongoing_events"><ul><li>Ongoing 1</li></ul></div>
    """

    feed = extract(html)

    assert feed == [Header("Ongoing"), Post("Ongoing 1")]


def test_section_with_empty_list_has_no_orphan_header():
    html = """
        <div aria-labelledby="Topics_in_the_news"><ul><li>  </li></ul></div>
        <div aria-labelledby="Recent_deaths"><ul><li>Person A</li></ul></div>
    """

    feed = extract(html)

    assert feed == [Header("Recent Deaths"), Post("Person A")]


@pytest.mark.parametrize("html", ["", "   ", "<html><body><p>Nothing</p></body></html>"])
def test_no_sections_raises_no_content(html):
    with pytest.raises(NoContentError):
        extract(html)


def test_empty_sections_raise_no_content():
    html = """
        <div aria-labelledby="Topics_in_the_news"><ul></ul></div>
        <div aria-labelledby="Ongoing_events"></div>
        <div class="current-events-heading"><span class="summary">1 May 2025 (Thursday)</span></div>
    """

    with pytest.raises(NoContentError):
        extract(html)


def test_no_content_is_an_extract_error():
    assert issubclass(NoContentError, ExtractError)


def test_daily_sections_as_siblings_of_body():
    html = textwrap.dedent(
        """\
        <html><body>
          <div class="current-events-heading">
            <span class="summary">December 6 (Wednesday)</span>
          </div>
          <div class="current-events-content">
            <ul><li>Daily event 1</li><li>Daily event 2</li></ul>
          </div>
          <div class="current-events-heading">
            <span class="summary">December 5 (Tuesday)</span>
          </div>
          <div class="current-events-content">
            <ul><li>Daily event 3</li></ul>
          </div>
        </body></html>
        """
    )

    feed = extract(html)

    assert feed == [
        Header("December 6"),
        Post("Daily event 1"),
        Post("Daily event 2"),
        Header("December 5"),
        Post("Daily event 3"),
    ]


def test_day_without_content_keeps_header_and_does_not_steal_next_list():
    html = """
        <div class="current-events-main">
          <div class="current-events-heading"><span class="summary">2 May 2025 (Friday)</span></div>
        </div>
        <div class="current-events-main">
          <div class="current-events-heading"><span class="summary">1 May 2025 (Thursday)</span></div>
          <div class="current-events-content"><ul><li>May day</li></ul></div>
        </div>
    """

    feed = extract(html)

    assert feed == [
        Header("2 May 2025"),
        Header("1 May 2025"),
        Post("May day"),
    ]


def test_day_heading_without_summary_is_skipped():
    html = """
        <div class="current-events-main">
          <div class="current-events-heading"><span>No summary</span></div>
          <div class="current-events-content"><ul><li>Orphan</li></ul></div>
        </div>
        <div aria-labelledby="Ongoing_events"><ul><li>Ongoing 1</li></ul></div>
    """

    feed = extract(html)

    assert feed == [Header("Ongoing"), Post("Ongoing 1")]


def test_nested_items_follow_document_order():
    html = """
        <div aria-labelledby="Topics_in_the_news">
          <ul><li>Outer<ul><li>Inner</li></ul></li><li>Last</li></ul>
        </div>
    """

    feed = extract(html)

    assert [post.text for post in feed.posts] == ["Outer Inner", "Inner", "Last"]


def test_custom_origin_is_used_for_links():
    html = '<div aria-labelledby="Ongoing_events"><ul><li><a href="/wiki/X">X</a></li></ul></div>'

    feed = SectionExtractor(origin="https://en.wikipedia.org/").extract(html)

    assert feed.posts[0].html == '<a href="https://en.wikipedia.org/wiki/X">X</a>'


@pytest.mark.parametrize(
    "label, expected",
    [
        ("24 July 2025 (Thursday)", "24 July 2025"),
        ("  December 6 (Wednesday)  ", "December 6"),
        ("1 May 2025", "1 May 2025"),
        ("Summit (Geneva) 2025", "Summit (Geneva) 2025"),
    ],
)
def test_strip_weekday(label, expected):
    assert strip_weekday(label) == expected


def test_extract_returns_immutable_feed(portal_html):
    feed = extract(portal_html)

    assert isinstance(feed, Feed)
    with pytest.raises(TypeError):
        feed[0] = Header("changed")

"""
Tests for raw link extraction.
"""
import pytest

from webtree.crawler.parser import LinkExtractor

BODY = b"""
<html>
  <head>
    <link rel="stylesheet" href="/style.css">
    <script src="app.js"></script>
  </head>
  <body>
    <a href="/first">First</a>
    <img src='images/logo.png'>
    <form action="/submit?x=1"></form>
    <a href="  ./second  ">Second</a>
    <a name="anchor-without-href">Nothing</a>
    <a href="">Empty</a>
  </body>
</html>
"""


def test_html_strategy_preserves_document_order():
    links = LinkExtractor('html').extract_raw_links(BODY)
    assert links == ["/style.css", "app.js", "/first", "images/logo.png", "/submit?x=1", "./second"]


def test_pattern_strategy_only_matches_double_quoted_simple_values():
    links = LinkExtractor('pattern').extract_raw_links(BODY)
    # single quotes, whitespace and '?' are outside the pattern
    assert links == ["/style.css", "app.js", "/first"]


def test_duplicates_are_kept():
    body = b'<a href="/x"></a><a href="/x"></a>'
    assert LinkExtractor().extract_raw_links(body) == ["/x", "/x"]


@pytest.mark.parametrize("strategy", ["html", "pattern"])
def test_empty_body(strategy):
    assert LinkExtractor(strategy).extract_raw_links(b"") == []


def test_non_html_body_yields_nothing():
    assert LinkExtractor().extract_raw_links(b"just some plain text") == []


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValueError):
        LinkExtractor('xpath')

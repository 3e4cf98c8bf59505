from conftest import isin, listing_body, search_body, stock_link

from stockscraper.scraper.page import ResultPage, parse_branch_ids


def test_result_page_extracts_links_and_counters():
    codes = [isin(1), isin(2), isin(3)]
    page = ResultPage.from_html("u", search_body([stock_link(c) for c in codes], amount=3, total=10))

    assert page.url == "u"
    assert page.links == tuple(stock_link(c) for c in codes)
    assert page.isins == codes
    assert page.amount == 3
    assert page.amount_total == 10


def test_result_page_isin_is_trailing_twelve_chars():
    page = ResultPage.from_html("u", search_body(["https://www.consorsbank.de/ev/aktie/sixt-se-DE0007231326"]))
    assert page.isins == ["DE0007231326"]


def test_result_page_missing_counters():
    page = ResultPage.from_html("u", search_body([]))
    assert page.links == ()
    assert page.amount is None
    assert page.amount_total is None


def test_result_page_unparseable_counters():
    body = "<response><amount>n/a</amount><amount_total>12</amount_total></response>"
    page = ResultPage.from_html("u", body)
    assert page.amount is None
    assert page.amount_total == 12


def test_result_page_ignores_empty_link_targets():
    body = "<response><row><link_target> </link_target></row><row><link_target>x-US0235861004</link_target></row></response>"
    assert ResultPage.from_html("u", body).isins == ["US0235861004"]


def test_parse_branch_ids_skips_header_row():
    assert parse_branch_ids(listing_body(["1", "4", "8", "52"])) == [1, 4, 8, 52]


def test_parse_branch_ids_skips_non_numeric_keys():
    assert parse_branch_ids(listing_body(["3", "all", "7"])) == [3, 7]


def test_parse_branch_ids_header_only():
    assert parse_branch_ids(listing_body([])) == []

from stockscraper.scraper.urls import UrlBuilder

BASE = "https://www.consorsbank.de/euroWebDe/servlets/financeinfos_ajax"


def test_listing_url():
    assert UrlBuilder().listing_url() == f"{BASE}?page=OptionsBranch&version=2"


def test_search_url_first_page(urls):
    assert urls.search_url(4) == (
        f"{BASE}?page=StocksFinder&version=2&FIGURE0=PER.EVALUATION&YEAR0=2016&branch=4&blocksize=20"
    )


def test_search_url_page_size_zero():
    assert "blocksize=0" in UrlBuilder(per_page=0).search_url(4)


def test_search_url_negative_page_size_is_clamped():
    urls = UrlBuilder(per_page=-5)
    assert urls.per_page == 0
    assert "blocksize=0" in urls.search_url(4)


def test_search_url_page_offset_only_after_first_page(urls):
    assert "pageoffset" not in urls.search_url(4, pageoffset=0)
    assert "pageoffset" not in urls.search_url(4, pageoffset=1)
    assert urls.search_url(4, pageoffset=2).endswith("&blocksize=20&pageoffset=2")


def test_abs_url_keeps_absolute_urls(urls):
    assert urls.abs_url("http://example.com/x") == "http://example.com/x"
    assert urls.abs_url("https://example.com/x") == "https://example.com/x"
    assert urls.abs_url("euroWebDe/x") == "https://www.consorsbank.de/euroWebDe/x"


def test_page_url_appends_offset(urls):
    first = urls.search_url(4)
    assert urls.page_url(first, 3) == f"{first}&pageoffset=3"


def test_custom_base_url_without_trailing_slash():
    urls = UrlBuilder(base_url="http://localhost:8080", year=2020)
    assert urls.listing_url().startswith("http://localhost:8080/euroWebDe/")
    assert "YEAR0=2020" in urls.search_url(1)


def test_default_first_page_urls_fit_length_threshold(urls):
    # 首页地址不超过149个字符，带 pageoffset 的地址超过
    assert len(urls.search_url(4)) <= 149
    assert len(urls.search_url(52)) <= 149
    assert len(urls.page_url(urls.search_url(4), 1)) > 149

from footprint_tracker.categories import CATEGORIES, categorize, display_name


def test_builtin_patterns():
    assert categorize("https://github.com/org/repo") == "productivity"
    assert categorize("https://www.youtube.com/watch?v=1") == "entertainment"
    assert categorize("https://www.reddit.com/r/python") == "social"
    assert categorize("https://en.wikipedia.org/wiki/Python") == "education"
    assert categorize("https://mail.gmail.com/") == "work"


def test_first_category_in_table_order_wins():
    """bloomberg.com is listed under news and finance; news comes first."""
    assert categorize("https://www.bloomberg.com/markets") == "news"


def test_hostname_match_is_case_insensitive():
    assert categorize("https://GitHub.com/Org") == "productivity"
    assert categorize("https://intranet.acme.io", {"work": ["ACME.IO"]}) == "work"


def test_user_patterns_take_precedence():
    user = {"learning": ["github.com"]}
    assert categorize("https://github.com/org/repo", user) == "learning"
    assert categorize("https://youtube.com", user) == "entertainment"


def test_unknown_and_malformed_urls_fall_back_to_other():
    assert categorize("https://example.org/page") == "other"
    assert categorize("not a url") == "other"
    assert categorize("") == "other"
    assert categorize(None) == "other"
    assert categorize("http://[::1") == "other"


def test_categorize_is_deterministic():
    urls = ["https://github.com", "https://netflix.com", "https://example.com", "bogus"]
    first = [categorize(url) for url in urls]
    for _ in range(5):
        assert [categorize(url) for url in urls] == first


def test_category_labels():
    assert len(CATEGORIES) == 10
    assert CATEGORIES[-1] == "other"
    assert display_name("productivity") == "Productivity"

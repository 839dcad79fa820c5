"""Tests for the price extraction cascade."""

import json
from decimal import Decimal

from pricecompare.scrapers.extraction import (
    MAX_VISIBLE_ITEMS,
    AppStateStrategy,
    PriceExtractor,
    StructuredDataStrategy,
    VisibleTextStrategy,
    iter_tree,
    parse_html,
    scan_priced_nodes,
)


def ld_json(data) -> str:
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


PRODUCT_PAGE = (
    "<html><head><title>iPhone 15 | Xcite</title>"
    + ld_json(
        {
            "@context": "https://schema.org",
            "@type": "Product",
            "name": "Apple iPhone 15 128GB",
            "url": "/apple-iphone-15-p-123",
            "offers": {"@type": "Offer", "price": "279.900", "priceCurrency": "KWD"},
        }
    )
    + "</head><body><h1>Apple iPhone 15</h1></body></html>"
)

MENU_PAGE = "<html><head>" + ld_json(
    {
        "@context": "https://schema.org",
        "@type": "Restaurant",
        "name": "Shawarma House",
        "hasMenu": {"@type": "Menu"},
        "@graph": [
            {
                "@type": "Menu",
                "hasMenuSection": [
                    {
                        "@type": "MenuSection",
                        "hasMenuItem": [
                            {
                                "@type": "MenuItem",
                                "name": "Chicken Shawarma",
                                "offers": {"price": "1.250", "priceCurrency": "KWD"},
                            },
                            {
                                "@type": "MenuItem",
                                "name": "Beef Shawarma",
                                "offers": [{"price": "1.500"}],
                            },
                        ],
                    }
                ],
            }
        ],
    }
) + "</head><body></body></html>"

NEXT_DATA_PAGE = (
    '<html><body><script id="__NEXT_DATA__" type="application/json">'
    + json.dumps(
        {
            "props": {
                "pageProps": {
                    "menu": {
                        "items": [
                            {"title": "Chicken Shawarma Wrap", "price": 1.25, "url": "/item/1"},
                            {"title": "Diet Coke", "price": "0.350 KWD"},
                            {"title": "Free Garlic Sauce", "price": 0},
                        ]
                    }
                }
            }
        }
    )
    + "</script></body></html>"
)

VISIBLE_PAGE = """
<html><body>
  <div class="menu-item">
    <h3>Chicken Shawarma Plate</h3>
    <p>Served with fries</p>
    <span class="price">2.750 KWD</span>
  </div>
  <div class="menu-item">
    <h3>Falafel Wrap</h3>
    <span class="price">0.900 KWD</span>
  </div>
</body></html>
"""


class TestStructuredDataStrategy:
    def test_product_offer(self):
        items = StructuredDataStrategy().extract(
            parse_html(PRODUCT_PAGE), PRODUCT_PAGE, "https://www.xcite.com/search?q=iphone"
        )

        assert len(items) == 1
        assert items[0].name == "Apple iPhone 15 128GB"
        assert items[0].price == Decimal("279.9")
        assert items[0].currency == "KWD"
        assert items[0].url == "https://www.xcite.com/apple-iphone-15-p-123"

    def test_nested_menu_items(self):
        items = StructuredDataStrategy().extract(parse_html(MENU_PAGE), MENU_PAGE)

        assert [(i.name, i.price) for i in items] == [
            ("Chicken Shawarma", Decimal("1.25")),
            ("Beef Shawarma", Decimal("1.5")),
        ]

    def test_top_level_array(self):
        body = ld_json(
            [
                {"@type": "WebSite", "name": "Blink"},
                {"@type": "Product", "name": "Galaxy S24", "offers": {"lowPrice": "249"}},
            ]
        )
        items = StructuredDataStrategy().extract(parse_html(body), body)

        assert [(i.name, i.price) for i in items] == [("Galaxy S24", Decimal("249"))]

    def test_malformed_block_is_skipped(self):
        body = (
            '<script type="application/ld+json">{"@type": "Product", broken</script>'
            + ld_json({"@type": "Product", "name": "AirPods Pro", "offers": {"price": "75"}})
        )
        items = StructuredDataStrategy().extract(parse_html(body), body)

        assert [i.name for i in items] == ["AirPods Pro"]

    def test_product_without_price_is_ignored(self):
        body = ld_json({"@type": "Product", "name": "Mystery Box"})
        assert StructuredDataStrategy().extract(parse_html(body), body) == []


class TestAppStateStrategy:
    def test_next_data(self):
        items = AppStateStrategy().extract(
            parse_html(NEXT_DATA_PAGE), NEXT_DATA_PAGE, "https://www.talabat.com/kuwait/search"
        )

        assert [(i.name, i.price) for i in items] == [
            ("Chicken Shawarma Wrap", Decimal("1.25")),
            ("Diet Coke", Decimal("0.35")),
        ]
        assert items[0].url == "https://www.talabat.com/item/1"

    def test_window_state_assignment(self):
        state = {"results": [{"name": "PlayStation 5", "price": {"amount": "159.900"}}]}
        body = f"<html><script>window.__INITIAL_STATE__ = {json.dumps(state)};</script></html>"

        items = AppStateStrategy().extract(parse_html(body), body)

        assert [(i.name, i.price) for i in items] == [("PlayStation 5", Decimal("159.9"))]

    def test_unparseable_state(self):
        body = '<script id="__NEXT_DATA__">{not json</script>'
        assert AppStateStrategy().extract(parse_html(body), body) == []

    def test_no_state(self):
        body = "<html><body>nothing here</body></html>"
        assert AppStateStrategy().extract(parse_html(body), body) == []


class TestVisibleTextStrategy:
    def test_price_with_container_heading(self):
        items = VisibleTextStrategy().extract(parse_html(VISIBLE_PAGE), VISIBLE_PAGE)
        pairs = {(i.name, i.price) for i in items}

        assert ("Chicken Shawarma Plate", Decimal("2.75")) in pairs
        assert ("Falafel Wrap", Decimal("0.9")) in pairs
        assert all(i.currency == "KWD" for i in items)

    def test_arabic_price_text(self):
        body = '<div class="card"><h4>شاورما دجاج</h4><span class="price">١٫٢٥٠ د.ك</span></div>'
        items = VisibleTextStrategy().extract(parse_html(body), body)

        assert items[0].name == "شاورما دجاج"
        assert items[0].price == Decimal("1.25")

    def test_long_text_is_ignored(self):
        blurb = "Delivery fee 0.500 KWD " + "lorem ipsum " * 30
        body = f'<div class="card"><h3>Notice</h3><p><span>{blurb}</span></p></div>'
        assert VisibleTextStrategy().extract(parse_html(body), body) == []

    def test_number_in_heading_is_not_a_price(self):
        body = '<div class="card"><h3>Shawarma Meal 2 pcs</h3><span class="price">1.250 KWD</span></div>'
        items = PriceExtractor().extract(body)

        assert [(i.name, i.price) for i in items] == [("Shawarma Meal 2 pcs", Decimal("1.25"))]

    def test_promo_number_is_not_a_price(self):
        body = (
            '<div class="card"><h3>Family Box</h3>'
            '<span class="price">Save 20% now 4.500 KWD</span></div>'
        )
        items = VisibleTextStrategy().extract(parse_html(body), body)

        assert {(i.name, i.price) for i in items} == {("Family Box", Decimal("4.5"))}

    def test_scanned_elements_are_bounded(self, monkeypatch):
        monkeypatch.setattr("pricecompare.scrapers.extraction.MAX_SCANNED_ELEMENTS", 3)
        filler = "<div><span>no price here</span></div>" * 5
        body = filler + '<div class="card"><h3>Late Dish</h3><span class="price">1.000 KWD</span></div>'

        assert VisibleTextStrategy().extract(parse_html(body), body) == []

    def test_caps_items(self):
        cards = "".join(
            f'<div class="card"><h3>Dish {n}</h3><span class="price">{n}.000 KWD</span></div>'
            for n in range(1, 40)
        )
        items = VisibleTextStrategy().extract(parse_html(cards), cards)
        assert len(items) <= MAX_VISIBLE_ITEMS


class TestPriceExtractor:
    def test_structured_data_wins(self):
        body = PRODUCT_PAGE.replace(
            "<body>", '<body><div class="card"><h3>Other</h3><span>9.000 KWD</span></div>'
        )
        items = PriceExtractor().extract(body, "https://www.xcite.com/p/1")
        assert [i.name for i in items] == ["Apple iPhone 15 128GB"]

    def test_falls_through_to_app_state(self):
        items = PriceExtractor().extract(NEXT_DATA_PAGE, "https://www.talabat.com/kuwait/search")
        assert [i.name for i in items] == ["Chicken Shawarma Wrap", "Diet Coke"]

    def test_falls_through_to_visible_text(self):
        items = PriceExtractor().extract(VISIBLE_PAGE)
        assert {i.name for i in items} >= {"Chicken Shawarma Plate", "Falafel Wrap"}

    def test_page_without_prices(self):
        body = "<html><body><h3>About us</h3><p>We love food.</p></body></html>"
        assert PriceExtractor().extract(body) == []

    def test_empty_body(self):
        assert PriceExtractor().extract("") == []

    def test_duplicates_collapsed(self):
        body = ld_json(
            [
                {"@type": "Product", "name": "Dyson V15", "offers": {"price": "219"}},
                {"@type": "Product", "name": "dyson v15", "offers": {"price": "219.000"}},
            ]
        )
        assert len(PriceExtractor().extract(body)) == 1

    def test_failing_strategy_is_skipped(self):
        class Exploding(StructuredDataStrategy):
            name = "exploding"

            def extract(self, soup, body, url=None):
                raise RuntimeError("boom")

        extractor = PriceExtractor([Exploding(), AppStateStrategy()])
        assert len(extractor.extract(NEXT_DATA_PAGE)) == 2


class TestPageTitle:
    def test_og_title_preferred(self):
        body = (
            '<head><meta property="og:title" content="Shawarma House | Talabat">'
            "<title>ignored</title></head>"
        )
        assert PriceExtractor.page_title(body) == "Shawarma House"

    def test_title_tag(self):
        assert PriceExtractor.page_title(PRODUCT_PAGE) == "iPhone 15"

    def test_missing(self):
        assert PriceExtractor.page_title("<html></html>") is None


class TestTreeWalk:
    def test_depth_bound(self):
        root: dict = {"name": "deep", "price": 1}
        for _ in range(100):
            root = {"child": root}
        assert scan_priced_nodes(root) == []

    def test_node_bound(self):
        tree = [{"n": i} for i in range(50)]
        assert len(list(iter_tree(tree, max_nodes=10))) < 10

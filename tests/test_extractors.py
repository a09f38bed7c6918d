"""Tests for the five signal extractors.

Every extractor is a pure function of a normalised :class:`Document`, so the
tests build small HTML fixtures and run them through ``normalize`` first.
"""

from __future__ import annotations

import pytest

from compintel.scraper.extractors import extract_signals
from compintel.scraper.extractors.buttons import classify_button, extract_buttons
from compintel.scraper.extractors.coupons import extract_coupons, is_plausible_code
from compintel.scraper.extractors.discounts import classify_discount, extract_discounts
from compintel.scraper.extractors.features import categorize_feature, extract_features
from compintel.scraper.extractors.pricing import (
    categorize_pricing,
    detect_billing,
    extract_pricing,
    find_prices,
)
from compintel.scraper.normalizer import normalize
from compintel.scraper.scoring import CAPS

# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_PRICING_HTML = """\
<html><body>
  <nav><span class="price">$5</span></nav>
  <section class="pricing">
    <div class="plan-card">
      <h3>Pro</h3>
      <div class="price">$49/month</div>
      <ul><li>Unlimited projects</li><li>Priority support</li></ul>
    </div>
    <div class="plan-card">
      <h3>Enterprise</h3>
      <div class="price">$199/month</div>
    </div>
  </section>
</body></html>
"""

_PROMO_HTML = """\
<html><body>
  <div class="promo-banner"><p>Use code SAVE20 for 20% off your first order</p></div>
</body></html>
"""

_FEATURES_HTML = """\
<html><body>
  <nav><ul><li>Home</li><li>Pricing page link</li></ul></nav>
  <div class="plan pro-plan">
    <h3>Pro</h3>
    <ul><li>Advanced analytics dashboard</li><li>Email support</li></ul>
  </div>
  <ul class="features">
    <li>✓ Unlimited projects</li>
    <li>SSO and audit logs</li>
    <li>Browser extension included</li>
  </ul>
  <footer><ul><li>© 2024 Acme Inc.</li></ul></footer>
</body></html>
"""

_BUTTONS_HTML = """\
<html><body>
  <header><a class="btn" href="/login">Log in</a></header>
  <section class="hero">
    <a class="btn btn-primary" href="/signup">Start free trial</a>
  </section>
  <div class="plan">
    <h3>Business</h3>
    <button class="btn">Contact sales</button>
  </div>
  <button class="close">×</button>
  <button style="display: none">Hidden offer</button>
  <input type="submit" value="Buy now">
</body></html>
"""


def _doc(html: str):
    return normalize(html, "https://example.com/")


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

class TestFindPrices:
    def test_symbol_prefixed(self) -> None:
        assert find_prices("Only $49/month") == ["$49"]

    def test_code_prefixed_and_suffixed(self) -> None:
        assert find_prices("EUR 29 or 35 GBP") == ["EUR 29", "35 GBP"]

    def test_overlapping_forms_reported_once(self) -> None:
        assert find_prices("$49 USD") == ["$49"]

    def test_thousands_and_cents(self) -> None:
        assert find_prices("From $1,299.99") == ["$1,299.99"]


class TestPricingRules:
    def test_billing_keywords(self) -> None:
        assert detect_billing("$10 per month") == "monthly"
        assert detect_billing("$100 billed annually") == "yearly"
        assert detect_billing("$99 lifetime") == "one-time"

    def test_category_priority(self) -> None:
        assert categorize_pricing("Free forever", "Starter") == "freemium"
        assert categorize_pricing("Contact sales", "Custom") == "enterprise"
        assert categorize_pricing("$0.01 per request", "API") == "usage-based"
        assert categorize_pricing("$20/month", "Pro") == "subscription"
        assert categorize_pricing("$99", "Lifetime") == "one-time"


class TestExtractPricing:
    def test_price_under_pro_heading(self) -> None:
        items = extract_pricing(_doc(_PRICING_HTML))
        pro = next(i for i in items if i.price == "$49")
        assert pro.plan == "Pro"
        assert pro.billing == "monthly"
        assert pro.category == "subscription"
        assert pro.currency == "USD"
        assert pro.confidence >= 0.5

    def test_plan_features_are_attached(self) -> None:
        items = extract_pricing(_doc(_PRICING_HTML))
        pro = next(i for i in items if i.price == "$49")
        assert pro.features == ["Unlimited projects", "Priority support"]

    def test_enterprise_plan_category(self) -> None:
        items = extract_pricing(_doc(_PRICING_HTML))
        enterprise = next(i for i in items if i.price == "$199")
        assert enterprise.plan == "Enterprise"
        assert enterprise.category == "enterprise"

    def test_navigation_prices_are_ignored(self) -> None:
        prices = [i.price for i in extract_pricing(_doc(_PRICING_HTML))]
        assert "$5" not in prices

    def test_script_like_text_is_rejected(self) -> None:
        html = '<div class="price">var price = 49; return total; $49</div>'
        assert extract_pricing(_doc(html)) == []

    def test_implausible_amount_is_rejected(self) -> None:
        assert extract_pricing(_doc('<div class="price">$75,000</div>')) == []

    def test_default_plan_name(self) -> None:
        items = extract_pricing(_doc('<div class="price">$15</div>'))
        assert items[0].plan == "Standard Plan"
        assert items[0].billing == "one-time"

    def test_plan_from_section_heading(self) -> None:
        html = '<section><h2>Pro</h2><div class="price">$49/month</div></section>'
        items = extract_pricing(_doc(html))
        assert items[0].plan == "Pro"

    def test_unrelated_heading_is_not_a_plan(self) -> None:
        html = (
            "<section><h2>Why teams choose us</h2><p>Reliable.</p></section>"
            '<div><div class="price">$15</div></div>'
        )
        items = extract_pricing(_doc(html))
        assert items[0].plan == "Standard Plan"

    def test_no_duplicate_price_plan_pairs(self) -> None:
        items = extract_pricing(_doc(_PRICING_HTML))
        keys = [(i.price, i.plan) for i in items]
        assert len(keys) == len(set(keys))


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------

class TestExtractCoupons:
    def test_keyed_code(self) -> None:
        coupons = extract_coupons(_doc(_PROMO_HTML))
        assert [c.code for c in coupons] == ["SAVE20"]
        assert coupons[0].discount == "20%"
        assert coupons[0].confidence >= 0.5

    def test_expiry_is_parsed(self) -> None:
        html = '<div class="coupon"><p>Use code SPRING10, expires 12/31/2025</p></div>'
        coupons = extract_coupons(_doc(html))
        assert coupons[0].code == "SPRING10"
        assert coupons[0].expiry == "12/31/2025"
        assert coupons[0].discount == "see details"

    def test_banner_words_are_not_codes(self) -> None:
        html = '<div class="promo"><p>SUMMER SALE now on</p></div>'
        assert extract_coupons(_doc(html)) == []

    def test_explicit_code_holder_accepts_letters_only(self) -> None:
        html = '<span class="coupon-code">WELCOME</span>'
        assert [c.code for c in extract_coupons(_doc(html))] == ["WELCOME"]

    def test_data_attribute_code(self) -> None:
        html = '<button data-coupon="TAKE15">Copy</button>'
        assert [c.code for c in extract_coupons(_doc(html))] == ["TAKE15"]

    def test_ui_word_after_keyword_is_rejected(self) -> None:
        assert extract_coupons(_doc("<p>Enter code: HOME</p>")) == []

    def test_chrome_is_ignored(self) -> None:
        html = "<footer><p>Use code FOOTER50 for 50% off</p></footer>"
        assert extract_coupons(_doc(html)) == []

    def test_plausibility(self) -> None:
        assert is_plausible_code("SAVE20") is True
        assert is_plausible_code("12345") is False
        assert is_plausible_code("AB") is False
        assert is_plausible_code("MENU") is False


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------

class TestClassifyDiscount:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Get 20% off today", ("percentage", "20")),
            ("Save up to 35% on annual plans", ("percentage", "35")),
            ("$10 off your order", ("fixed", "10")),
            ("Save $15 with yearly billing", ("fixed", "15")),
            ("Buy one get one free", ("bogo", None)),
            ("Start your 14-day free trial", ("free-trial", None)),
            ("Free shipping on all orders", ("free-shipping", None)),
            ("Limited time offer", ("limited-time", None)),
        ],
    )
    def test_types(self, text: str, expected: tuple) -> None:
        assert classify_discount(text) == expected

    def test_plain_text(self) -> None:
        assert classify_discount("Our team of experts") is None


class TestExtractDiscounts:
    def test_percentage_discount(self) -> None:
        discounts = extract_discounts(_doc(_PROMO_HTML))
        assert len(discounts) == 1
        discount = discounts[0]
        assert discount.type == "percentage"
        assert discount.percentage == "20"
        assert discount.amount is None
        assert discount.conditions is not None and "first order" in discount.conditions

    def test_valid_until(self) -> None:
        html = '<div class="sale"><p>30% off everything, ends Dec 31, 2025</p></div>'
        discount = extract_discounts(_doc(html))[0]
        assert discount.valid_until == "Dec 31, 2025"

    def test_text_is_truncated(self) -> None:
        html = '<div class="deal"><p>20% off ' + "and more savings " * 12 + "</p></div>"
        discount = extract_discounts(_doc(html))[0]
        assert len(discount.text) <= 120


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

class TestExtractFeatures:
    def test_chrome_is_excluded(self) -> None:
        texts = [f.text for f in extract_features(_doc(_FEATURES_HTML))]
        assert "Home" not in texts
        assert "Pricing page link" not in texts
        assert not any("©" in t for t in texts)

    def test_categories(self) -> None:
        by_text = {f.text: f for f in extract_features(_doc(_FEATURES_HTML))}
        assert by_text["Advanced analytics dashboard"].category == "premium"
        assert by_text["✓ Unlimited projects"].category == "enterprise"
        assert by_text["SSO and audit logs"].category == "enterprise"
        assert by_text["Browser extension included"].category == "addon"

    def test_plan_context(self) -> None:
        by_text = {f.text: f for f in extract_features(_doc(_FEATURES_HTML))}
        email = by_text["Email support"]
        assert email.plan == "Pro"
        # No keyword of its own, so the plan name decides.
        assert email.category == "premium"

    def test_list_wrapper_is_not_a_feature(self) -> None:
        texts = [f.text for f in extract_features(_doc(_FEATURES_HTML))]
        assert not any("SSO and audit logs" in t and t != "SSO and audit logs" for t in texts)

    def test_categorize_defaults_to_core(self) -> None:
        assert categorize_feature("Email support") == "core"
        assert categorize_feature("Email support", "Business") == "enterprise"


# ---------------------------------------------------------------------------
# Buttons
# ---------------------------------------------------------------------------

class TestExtractButtons:
    def test_types_and_urls(self) -> None:
        by_text = {b.text: b for b in extract_buttons(_doc(_BUTTONS_HTML))}
        trial = by_text["Start free trial"]
        assert trial.type == "trial"
        assert trial.url == "https://example.com/signup"
        assert by_text["Contact sales"].type == "contact"
        assert by_text["Contact sales"].plan == "Business"
        assert by_text["Buy now"].type == "purchase"

    def test_hero_cta_ranks_first(self) -> None:
        buttons = extract_buttons(_doc(_BUTTONS_HTML))
        assert buttons[0].text == "Start free trial"

    def test_hidden_and_dismiss_buttons_are_skipped(self) -> None:
        texts = [b.text for b in extract_buttons(_doc(_BUTTONS_HTML))]
        assert "×" not in texts
        assert "Hidden offer" not in texts

    def test_header_button_is_penalised(self) -> None:
        texts = [b.text for b in extract_buttons(_doc(_BUTTONS_HTML))]
        assert "Log in" not in texts

    def test_malformed_href_leaves_url_empty(self) -> None:
        html = (
            '<section class="hero">'
            '<a class="btn btn-primary" href="http://[broken">Start free trial</a>'
            "</section>"
        )
        buttons = extract_buttons(_doc(html))
        assert [(b.text, b.type) for b in buttons] == [("Start free trial", "trial")]
        assert buttons[0].url is None

    def test_type_priority(self) -> None:
        assert classify_button("Sign up for a free trial") == "signup"
        assert classify_button("Book a demo") == "demo"
        assert classify_button("Download the app") == "download"
        assert classify_button("See plans") == "pricing"
        assert classify_button("Learn more about us") == "cta"


# ---------------------------------------------------------------------------
# Cross-extractor properties
# ---------------------------------------------------------------------------

_ALL_HTML = _PRICING_HTML + _PROMO_HTML + _FEATURES_HTML + _BUTTONS_HTML


class TestSignalProperties:
    def test_extraction_is_idempotent(self) -> None:
        doc = _doc(_ALL_HTML)
        assert extract_signals(doc) == extract_signals(doc)

    @pytest.mark.parametrize("name", ["pricing", "coupons", "discounts", "features", "buttons"])
    def test_confidence_sorted_capped_and_unique(self, name: str) -> None:
        items = getattr(extract_signals(_doc(_ALL_HTML)), name)
        confidences = [i.confidence for i in items]
        assert all(0.0 <= c <= 1.0 for c in confidences)
        assert confidences == sorted(confidences, reverse=True)
        assert len(items) <= CAPS[name]
        keys = [i.dedup_key for i in items]
        assert len(keys) == len(set(keys))

    def test_empty_page_yields_nothing(self) -> None:
        signals = extract_signals(_doc("<html><body></body></html>"))
        assert signals.pricing == signals.coupons == signals.discounts == []
        assert signals.features == signals.buttons == []

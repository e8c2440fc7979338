from tripbot.utils.links import build_tour_links
from tripbot.utils.tokens import (
    TOKEN_RE,
    build_token_vocabulary,
    city_key,
    contains_tokens,
    scrub_urls,
    substitute_tokens,
    vocabulary_listing,
)


def test_city_key_normalises():
    assert city_key("Dar es Salaam") == "DAR_ES_SALAAM"
    assert city_key("  Maasai-Mara!! ") == "MAASAI_MARA"
    assert city_key("***") == ""


def test_vocabulary_keeps_order_and_skips_duplicates():
    vocab = build_token_vocabulary(["Nairobi", "Mombasa", "nairobi", "", "!!"])
    assert list(vocab) == ["Nairobi", "Mombasa"]
    assert vocab["Nairobi"].search_token == "{{TOUR_SEARCH::NAIROBI}}"
    assert vocab["Nairobi"].recommended_token == "{{TOUR_RECOMMENDED::NAIROBI}}"


def test_substitution_replaces_every_token(affiliates):
    vocab = build_token_vocabulary(["Nairobi", "Diani"])
    text = (
        "Day 1: Nairobi\n"
        "Book tours: {{TOUR_RECOMMENDED::NAIROBI}}\n"
        "Day 2: Diani\n"
        "Browse: {{TOUR_SEARCH::DIANI}} and again {{TOUR_SEARCH::DIANI}}"
    )
    out = substitute_tokens(text, vocab, affiliates)

    assert not TOKEN_RE.search(out)
    assert build_tour_links("Nairobi", affiliates)[1] in out
    assert out.count(build_tour_links("Diani", affiliates)[0]) == 2
    assert out.startswith("Day 1: Nairobi\nBook tours: https://")


def test_substitution_is_idempotent(affiliates):
    vocab = build_token_vocabulary(["Nairobi"])
    once = substitute_tokens("See {{TOUR_SEARCH::NAIROBI}}.", vocab, affiliates)
    assert substitute_tokens(once, vocab, affiliates) == once


def test_text_without_tokens_is_unchanged(affiliates):
    vocab = build_token_vocabulary(["Nairobi"])
    text = "Nothing to see {here} or {{here}}."
    assert substitute_tokens(text, vocab, affiliates) == text


def test_unknown_key_never_leaks(affiliates):
    out = substitute_tokens("Try {{TOUR_SEARCH::CAPE_TOWN}}", {}, affiliates)
    assert "{{" not in out
    assert out == "Try " + build_tour_links("Cape Town", affiliates)[0]


def test_token_matched_as_whole_unit(affiliates):
    vocab = build_token_vocabulary(["Nairobi", "Nairobi West"])
    out = substitute_tokens("{{TOUR_SEARCH::NAIROBI_WEST}}", vocab, affiliates)
    assert out == build_tour_links("Nairobi West", affiliates)[0]


def test_contains_tokens():
    assert contains_tokens("x {{TOUR_SEARCH::LAMU}} y")
    assert not contains_tokens("{{tour_search::lamu}}")
    assert not contains_tokens("")


def test_vocabulary_listing():
    assert vocabulary_listing({}) == "None."
    listing = vocabulary_listing(build_token_vocabulary(["Lamu"]))
    assert listing == "- Lamu: search {{TOUR_SEARCH::LAMU}} | recommended {{TOUR_RECOMMENDED::LAMU}}"


def test_scrub_urls_keeps_link_labels():
    text = "Book [Nairobi tours](https://viator.com/x?a=1) or https://example.com/y now"
    assert scrub_urls(text) == "Book Nairobi tours or  now"

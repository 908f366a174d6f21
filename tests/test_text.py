from enrichment_operations.core.text import clean_text_content, describe_url, generate_embedding_text


def test_clean_text_collapses_whitespace():
    assert clean_text_content("  Stripe\n\n  payments\tdocs ") == "Stripe payments docs"
    assert clean_text_content(None) == ""


def test_clean_text_cuts_at_late_sentence_boundary():
    text = "a" * 85 + ". " + "b" * 50

    assert clean_text_content(text, max_length=100) == "a" * 85 + "."


def test_clean_text_hard_truncates_without_boundary():
    assert clean_text_content("x" * 200, max_length=100) == "x" * 100 + "..."


def test_describe_url():
    assert describe_url("https://github.com/docs/api") == "Github website docs api page"
    assert describe_url("https://www.stripe.com/") == "Stripe website"
    assert describe_url("https://example.com/getting-started_guide") == (
        "Example website getting started guide page"
    )
    assert describe_url(None) == ""


def test_embedding_text_joins_available_parts_in_order():
    assert generate_embedding_text("Stripe", "Payments platform", "Docs body") == (
        "Stripe Payments platform Docs body"
    )
    assert generate_embedding_text("Stripe", None, "  ") == "Stripe"


def test_embedding_text_falls_back_to_url_description():
    assert generate_embedding_text(None, "", None, "https://github.com/docs/api") == (
        "Github website docs api page"
    )
    assert generate_embedding_text(None, None) == ""

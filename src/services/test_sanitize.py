from services.sanitize import clean_text


def test_strips_markup_and_whitespace():
    assert clean_text("  <b>Plus de</b> <i>bancs</i>  ") == "Plus de bancs"


def test_drops_script_content():
    assert "alert" not in clean_text("Idée<script>alert(1)</script>")


def test_cuts_to_max_length():
    assert clean_text("a" * 600, 500) == "a" * 500


def test_none_becomes_empty_string():
    assert clean_text(None) == ""

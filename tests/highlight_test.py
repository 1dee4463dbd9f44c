from src.common.highlight import MARK_STYLE, escape_html, highlight_matches


def mark(text: str) -> str:
    return f'<mark style="{MARK_STYLE}">{text}</mark>'


def test_escapes_before_marking():
    result = highlight_matches("Cast <fire>", "fire")
    assert "<fire>" not in result
    assert result == f"Cast &lt;{mark('fire')}&gt;"


def test_escapes_without_match():
    assert highlight_matches("<b>Bold</b> & brave", "zzz") == "&lt;b&gt;Bold&lt;/b&gt; &amp; brave"


def test_empty_query_returns_escaped_text():
    assert highlight_matches("Fish & <chips>", "") == "Fish &amp; &lt;chips&gt;"


def test_empty_text():
    assert highlight_matches("", "fire") == ""
    assert highlight_matches(None, "fire") == ""
    assert escape_html(None) == ""


def test_preserves_original_casing_of_every_match():
    result = highlight_matches("Fire, fire, FIRE!", "fire")
    assert result == f"{mark('Fire')}, {mark('fire')}, {mark('FIRE')}!"


def test_regex_metacharacters_are_literal():
    result = highlight_matches("Roll 1d6+2 (or more)", "d6+2 (")
    assert result == f"Roll 1{mark('d6+2 (')}or more)"
    assert highlight_matches("anything", ".*") == "anything"


def test_query_never_matches_inside_entities():
    assert highlight_matches("Salt & pepper", "amp") == "Salt &amp; pepper"


def test_query_with_markup_characters_is_escaped_in_mark():
    result = highlight_matches("a <b> c", "<b>")
    assert result == f"a {mark('&lt;b&gt;')} c"

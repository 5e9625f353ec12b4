from echosphere.services.sanitizer import sanitize_text, sanitize_optional


def test_plain_text_is_unchanged():
    assert sanitize_text("Pothole on 5th & Main, 2 < 3") == "Pothole on 5th & Main, 2 < 3"


def test_tags_are_stripped():
    assert sanitize_text("<b>Broken</b> <a href='x'>light</a>") == "Broken light"


def test_script_bodies_are_removed():
    assert sanitize_text("<script>alert('x')</script>Overflowing bin") == "Overflowing bin"


def test_escaped_markup_does_not_survive():
    assert sanitize_text("&lt;script&gt;alert(1)&lt;/script&gt;Graffiti") == "Graffiti"


def test_empty_values():
    assert sanitize_text(None) == ""
    assert sanitize_text("   ") == ""
    assert sanitize_optional("<i></i>") is None
    assert sanitize_optional("jane@example.com") == "jane@example.com"


def test_deeply_encoded_markup_does_not_survive():
    text = "&amp;amp;lt;script&amp;amp;gt;alert(1)&amp;amp;lt;/script&amp;amp;gt;"
    assert sanitize_text(text) == ""

    nested = "&amp;amp;amp;lt;b&amp;amp;amp;gt;Flooded underpass"
    result = sanitize_text(nested)
    assert "<" not in result
    assert result.endswith("Flooded underpass")

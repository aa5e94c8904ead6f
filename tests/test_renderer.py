import pytest

from electrorank.errors import RenderError
from electrorank.renderer import TEMPLATES, render


def test_bundled_templates_only_use_declared_placeholders():
    for name in TEMPLATES:
        document = render(name, {"TITLE": "Check"})
        assert "{{" not in document
        assert "<title>Check</title>" in document


def test_text_fields_are_escaped_and_markup_is_verbatim():
    document = render(
        "category",
        {
            "TITLE": "Best <Earbuds> & More",
            "PRODUCTS": '<div class="product-card">Card</div>',
        },
    )
    assert "<title>Best &lt;Earbuds&gt; &amp; More</title>" in document
    assert '<div class="product-card">Card</div>' in document


def test_missing_declared_fields_render_empty():
    document = render("comparison", {})
    assert "<title></title>" in document


def test_unknown_field_key_is_rejected():
    with pytest.raises(RenderError, match="PRICE"):
        render("category", {"TITLE": "x", "PRICE": "100"})


def test_unknown_template_is_rejected():
    with pytest.raises(RenderError):
        render("homepage", {})


def test_undeclared_placeholder_in_template_is_rejected(tmp_path):
    (tmp_path / "category.html").write_text("<h1>{{HEADING}}</h1>{{SECRET}}", encoding="utf-8")
    with pytest.raises(RenderError, match="SECRET"):
        render("category", {"HEADING": "Hi"}, template_dir=tmp_path)


def test_missing_template_file_raises_render_error(tmp_path):
    with pytest.raises(RenderError):
        render("product", {}, template_dir=tmp_path)

import io
import json

import yaml

from modelcheck import render
from modelcheck.record import Record, validates


@validates("title", presence=True)
@validates("body", length={"minimum": 10})
class Article(Record):
    pass


def invalid_article():
    a = Article(title="", body="short")
    a.valid()
    return a


def test_header():
    a = invalid_article()
    assert render.header(a) == "2 errors prohibited this article from being saved"
    a.errors.delete("body")
    assert render.header(a) == "1 error prohibited this article from being saved"


def test_render_text():
    out = render.render_errors(invalid_article())
    assert out == (
        "2 errors prohibited this article from being saved\n"
        "  - Body is too short (minimum is 10 characters)\n"
        "  - Title can't be blank\n"
    )


def test_render_html():
    a = invalid_article()
    a.errors.add("base", "<script> is not allowed")
    out = render.render_errors(a, format="html")
    assert '<div id="error_explanation">' in out
    assert "<h2>3 errors prohibited this article from being saved</h2>" in out
    assert "<li>Title can&#39;t be blank</li>" in out
    assert "&lt;script&gt; is not allowed" in out


def test_render_nothing_when_valid():
    a = Article(title="Hi", body="long enough body")
    assert a.valid()
    assert render.render_errors(a) == ""
    assert render.render_errors(a, format="html") == ""


def test_render_json_and_yaml():
    a = invalid_article()
    data = json.loads(render.render_errors(a, format="json"))
    assert data == {
        "body": ["is too short (minimum is 10 characters)"],
        "title": ["can't be blank"],
    }
    assert yaml.safe_load(render.render_errors(a, format="yaml")) == data


def test_render_custom_template(tmp_path):
    tmpl = tmp_path / "errors.txt"
    tmpl.write_text("{% for e in errors %}{{ e.attribute }}={{ e.type }};{% endfor %}")
    out = render.render_errors(invalid_article(), template=tmpl.as_uri())
    assert out == "body=too_short;title=blank;"


def test_unknown_format():
    import pytest

    with pytest.raises(ValueError):
        render.render_errors(invalid_article(), format="pdf")


def test_check_and_report():
    results = render.check(
        [Article(title="Hi", body="long enough body"), Article(title="", body="")]
    )
    assert [r.valid for r in results] == [True, False]
    assert results[0].label == "Article:#1"
    text = render.report(results)
    assert text.splitlines() == [
        "Article:#1: valid",
        "Article:#2: invalid",
        "  - Body is too short (minimum is 10 characters)",
        "  - Title can't be blank",
        "1/2 valid",
    ]
    data = json.loads(render.report(results, format="json"))
    assert data[1]["errors"]["title"] == ["can't be blank"]
    assert data[1]["kind"] == "Article"


def test_write_report():
    results = render.check([Article(title="", body="x" * 12)])
    fp = io.StringIO()
    render.write_report(results, fp)
    assert fp.getvalue().endswith("0/1 valid\n")

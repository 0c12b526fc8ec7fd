import json

from click.testing import CliRunner

from modelcheck.cli.main import main


def run(*args):
    return CliRunner().invoke(main, list(args), catch_exceptions=False)


def test_check_reports_invalid_records():
    result = run("check", "-c", "tests/assets/rules", "tests/assets/people.yaml")
    assert result.exit_code == 1
    assert "Person:Ann: valid" in result.output
    assert "Person:Bartholomew Jr: invalid" in result.output
    assert "  - Name is too long (maximum is 10 characters)" in result.output
    assert "  - E-mail address doesn't look like an address" in result.output
    assert "2/3 valid" in result.output


def test_check_json_with_path():
    result = run(
        "check",
        "-c",
        "tests/assets/rules/people.yaml",
        "-f",
        "json",
        "--path",
        "people[*]",
        "--kind",
        "Person",
        "tests/assets/export.yaml",
    )
    assert result.exit_code == 1
    data = json.loads(result.output)
    assert [item["valid"] for item in data] == [True, False]
    assert data[1]["errors"]["email"] == ["can't be blank"]


def test_check_all_valid(tmp_path):
    data = tmp_path / "ok.yaml"
    data.write_text("kind: Person\nname: Ann\nemail: ann@example.com\n")
    result = run("check", "-c", "tests/assets/rules", str(data))
    assert result.exit_code == 0
    assert "1/1 valid" in result.output


def test_check_with_catalog():
    result = run(
        "check",
        "--catalog",
        "tests/assets/catalog.yaml",
        "-c",
        "tests/assets/rules",
        "--path",
        "people[*]",
        "--kind",
        "Person",
        "tests/assets/export.yaml",
    )
    assert "  - Name is required" in result.output


def test_rules_listing():
    result = run("rules", "-c", "tests/assets/rules/orders.yaml")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [v["kind"] for v in data["Order"]] == ["numericality", "inclusion"]
    assert data["Order"][1]["in"] == ["small", "medium", "large"]


def test_messages():
    result = run("messages")
    assert result.exit_code == 0
    assert "can't be blank" in result.output

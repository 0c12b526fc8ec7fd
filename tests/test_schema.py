import io

import pytest
from jsonschema.exceptions import ValidationError

from modelcheck import exceptions
from modelcheck import schema
from modelcheck.record import Record


def test_rules_schema():
    schema.RULES_SCHEMA.validate(
        dict(kind="Rules", target="Person", validates=[{"attributes": "name", "presence": True}])
    )
    with pytest.raises(ValidationError):
        schema.RULES_SCHEMA.validate(dict(kind="Rules", target="Person"))
    with pytest.raises(ValidationError):
        schema.RULES_SCHEMA.validate(
            dict(kind="Rules", target="Person", validates=[{"attributes": "name"}])
        )


def test_register_and_lookup():
    class Gadget(Record):
        pass

    assert schema.register_class(Gadget) is Gadget
    assert schema.lookup("Gadget") is Gadget
    assert schema.ensure_kind("Gadget") is Gadget
    generated = schema.ensure_kind("Gizmo")
    assert issubclass(generated, Record)
    assert generated.kind == "Gizmo"
    with pytest.raises(exceptions.ConfigurationError):
        schema.register("Thing", object)


def test_load_rules_merges_documents(config):
    kinds = schema.load_rules("tests/assets/rules/people.yaml")
    assert [k.kind for k in kinds] == ["Person"]
    Person = kinds[0]
    assert [v.kind for v in Person.validators()] == ["presence", "length", "format"]

    p = Person(name="", email="x")
    assert not p.valid()
    assert p.errors.full_messages == [
        "Name can't be blank",
        "E-mail address doesn't look like an address",
    ]


def test_load_rules_uses_registered_class():
    @schema.register_class
    class Person(Record):
        pass

    schema.load_rules("tests/assets/rules/people.yaml")
    assert len(Person.validators()) == 3


def test_load_config_directory():
    kinds = schema.load_config("tests/assets/rules")
    assert sorted(k.kind for k in kinds) == ["Order", "Person"]
    Order = schema.lookup("Order")
    order = Order(quantity="1.5", size="huge")
    assert not order.valid()
    assert order.errors.messages == {
        "quantity": ["must be an integer"],
        "size": ["is not included in the list"],
    }
    with pytest.raises(OSError):
        schema.load_config("tests/assets/nowhere")


def test_invalid_rules_document():
    doc = io.StringIO("kind: Rules\ntarget: Person\nvalidates: nope\n")
    with pytest.raises(exceptions.ConfigurationError) as e:
        schema.load_rules(doc)
    assert "validates" in str(e.value)


def test_unknown_validator_in_rules():
    doc = io.StringIO(
        "kind: Rules\ntarget: Person\nvalidates:\n  - attributes: name\n    telepathy: true\n"
    )
    with pytest.raises(exceptions.UnknownValidator):
        schema.load_rules(doc)


def test_malformed_yaml():
    with pytest.raises(exceptions.ConfigurationError):
        schema.load_rules(io.StringIO("kind: [Rules\n"))


def test_rules_file_skips_other_kinds():
    doc = io.StringIO(
        "kind: Person\nname: x\n---\n"
        "kind: Rules\ntarget: Person\nvalidates:\n  - {attributes: name, presence: true}\n"
    )
    assert [k.kind for k in schema.load_rules(doc)] == ["Person"]


def test_load_records():
    schema.load_config("tests/assets/rules")
    records = schema.load_records("tests/assets/people.yaml")
    assert [r.kind for r in records] == ["Person", "Person", "Order"]
    assert records[0].name == "Ann"
    assert [r.valid() for r in records] == [True, False, True]
    assert records[1].errors.attribute_names == ["name", "email"]


def test_load_records_with_path():
    schema.load_config("tests/assets/rules")
    records = schema.load_records(
        "tests/assets/export.yaml", path="people[*]", kind="Person"
    )
    assert [r.name for r in records] == ["Ann", ""]
    assert records[0].valid()
    assert not records[1].valid()
    assert records[1].errors.full_messages == [
        "Name can't be blank",
        "E-mail address can't be blank",
    ]


def test_load_records_needs_a_kind():
    with pytest.raises(exceptions.ConfigurationError):
        schema.load_records(io.StringIO("name: nobody\n"))


def test_load_records_into_dataclass():
    from dataclasses import dataclass

    @schema.register_class
    @dataclass
    class Person(Record):
        name: str = None

    (p,) = schema.load_records(io.StringIO("kind: Person\nname: Ann\nemail: a@b.c\n"))
    assert isinstance(p, Person)
    assert p.name == "Ann"
    assert p.email == "a@b.c"

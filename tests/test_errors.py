import pytest

from modelcheck import errors
from modelcheck.record import Record


class Person(Record):
    pass


@pytest.fixture
def person():
    return Person(name="", email="root@example.com")


def test_add_and_lookup(person):
    person.errors.add("name", "blank")
    assert person.errors["name"] == ["can't be blank"]
    assert person.errors["email"] == []
    assert "email" not in person.errors
    assert "name" in person.errors
    assert len(person.errors) == 1
    assert person.errors.size == 1
    assert not person.errors.empty


def test_reading_missing_attribute_does_not_add(person):
    person.errors["nothing"]
    assert person.errors.attribute_names == []
    assert person.errors.empty


def test_literal_message(person):
    person.errors.add("name", "looks odd")
    assert person.errors["name"] == ["looks odd"]
    assert person.errors.full_messages == ["Name looks odd"]
    assert person.errors.added("name", "looks odd")
    assert person.errors.of_kind("name", "looks odd")


def test_explicit_message_wins(person):
    person.errors.add("name", "blank", message="is required, {attribute}")
    assert person.errors["name"] == ["is required, Name"]
    assert person.errors.details == {"name": [{"error": "blank"}]}


def test_callable_message(person):
    person.errors.add(
        "email", "taken", message=lambda record, data: f"{data['value']} is in use"
    )
    assert person.errors["email"] == ["root@example.com is in use"]


def test_interpolation(person):
    person.errors.add("name", "too_short", count=3)
    assert person.errors["name"] == ["is too short (minimum is 3 characters)"]
    assert person.errors.details == {"name": [{"error": "too_short", "count": 3}]}


def test_full_messages(person):
    person.errors.add("name", "blank")
    person.errors.add("first_name", "blank")
    person.errors.add("base", "This person is invalid")
    assert person.errors.full_messages == [
        "Name can't be blank",
        "First name can't be blank",
        "This person is invalid",
    ]
    assert person.errors.full_messages_for("first_name") == [
        "First name can't be blank"
    ]
    assert person.errors.full_message("author_id", "is missing") == "Author is missing"


def test_added_and_of_kind(person):
    person.errors.add("name", "too_long", count=25)
    assert person.errors.added("name", "too_long", count=25)
    assert not person.errors.added("name", "too_long", count=24)
    assert not person.errors.added("name", "too_long")
    assert person.errors.of_kind("name", "too_long")
    assert not person.errors.of_kind("name", "blank")
    assert not person.errors.of_kind("email")


def test_where_and_delete(person):
    person.errors.add("name", "blank")
    person.errors.add("name", "too_short", count=2)
    person.errors.add("email", "invalid")
    assert len(person.errors.where("name")) == 2
    assert [e.type for e in person.errors.where("name", "too_short")] == ["too_short"]

    removed = person.errors.delete("name", "blank")
    assert removed == ["can't be blank"]
    assert person.errors.messages == {
        "name": ["is too short (minimum is 2 characters)"],
        "email": ["is invalid"],
    }
    assert person.errors.delete("nothing") == []


def test_clear(person):
    person.errors.add("name", "blank")
    person.errors.clear()
    assert person.errors.empty
    assert person.errors.messages == {}


def test_iteration_yields_errors(person):
    person.errors.add("name", "blank")
    person.errors.add("email", "invalid")
    items = list(person.errors)
    assert all(isinstance(e, errors.Error) for e in items)
    assert [e.attribute for e in items] == ["name", "email"]
    assert items[0].full_message == "Name can't be blank"


def test_group_by_attribute(person):
    person.errors.add("name", "blank")
    person.errors.add("email", "invalid")
    person.errors.add("name", "too_short", count=1)
    grouped = person.errors.group_by_attribute()
    assert list(grouped) == ["name", "email"]
    assert [e.type for e in grouped["name"]] == ["blank", "too_short"]


def test_merge_and_import(person):
    other = Person(name="x")
    other.errors.add("name", "blank")
    person.errors.merge(other.errors)
    assert person.errors["name"] == ["can't be blank"]
    assert person.errors.errors[0].record is person

    imported = person.errors.import_error(other.errors.errors[0], attribute="alias")
    assert imported.attribute == "alias"
    assert person.errors["alias"] == ["can't be blank"]


def test_copy_is_independent(person):
    person.errors.add("name", "blank")
    dup = person.errors.copy()
    dup.add("email", "invalid")
    assert len(person.errors) == 1
    assert len(dup) == 2


def test_generate_message(person):
    assert person.errors.generate_message("name", "taken") == "has already been taken"
    assert person.errors.empty


def test_to_dict(person):
    person.errors.add("name", "blank")
    assert person.errors.to_dict() == {"name": ["can't be blank"]}
    assert person.errors.to_dict(full_messages=True) == {
        "name": ["Name can't be blank"]
    }


def test_callback_options_are_not_details(person):
    person.errors.add("name", "blank", on="create", allow_nil=True, strict=False)
    assert person.errors.details == {"name": [{"error": "blank"}]}


def test_errors_without_record():
    e = errors.Errors()
    e.add("title", "blank")
    assert e.full_messages == ["Title can't be blank"]


def test_catalog_overrides_per_kind(config, person):
    config.catalog.load(
        {
            "attributes": {"person": {"email": "E-mail address"}},
            "errors": {
                "models": {
                    "person": {
                        "blank": "is needed",
                        "attributes": {"email": {"blank": "needs an @"}},
                    }
                }
            },
        }
    )
    person.errors.add("name", "blank")
    person.errors.add("email", "blank")
    assert person.errors.full_messages == [
        "Name is needed",
        "E-mail address needs an @",
    ]

import logging

from . import utils

log = logging.getLogger(__package__)

# options that steer when a validator runs; never part of an error's details
CALLBACK_OPTIONS = ("if_", "if", "unless", "on", "allow_nil", "allow_blank", "strict")
MESSAGE_OPTIONS = ("message",)


def _catalog_for(record):
    finder = getattr(type(record), "catalog", None)
    if record is not None and callable(finder):
        return finder()
    from .config import get_config

    return get_config().catalog


def _kind_for(record):
    if record is None:
        return None
    return getattr(type(record), "kind", None) or type(record).__name__


class Error:
    """A single validation failure of one attribute.

    ``type`` names a catalog message ("blank", "too_short") or is the
    message text itself. An explicit ``message`` option wins over both and
    may be a callable taking ``(record, data)``.
    """

    def __init__(self, record, attribute, type="invalid", /, **options):
        self.record = record
        self.attribute = str(attribute)
        self.raw_type = type
        self.type = type or "invalid"
        self.options = {
            k: v for k, v in options.items() if k not in CALLBACK_OPTIONS
        }

    @property
    def catalog(self):
        return _catalog_for(self.record)

    @property
    def base(self):
        return self.attribute == "base"

    def _value(self):
        if self.record is None or self.base:
            return None
        reader = getattr(self.record, "read_attribute", None)
        if reader is not None:
            return reader(self.attribute)
        return getattr(self.record, self.attribute, None)

    def _interpolation(self):
        catalog = self.catalog
        kind = _kind_for(self.record)
        data = {
            k: v for k, v in self.options.items() if k not in MESSAGE_OPTIONS
        }
        data.setdefault("model", catalog.human_model_name(kind) if kind else "")
        data.setdefault(
            "attribute", catalog.human_attribute_name(kind, self.attribute)
        )
        data.setdefault("value", self._value())
        return data

    @property
    def message(self):
        data = self._interpolation()
        msg = self.options.get("message")
        if callable(msg):
            msg = msg(self.record, data)
        if msg is not None:
            return utils.interpolate(str(msg), data)
        if not isinstance(self.type, str):
            return str(self.type)
        kind = _kind_for(self.record)
        return self.catalog.message(self.type, kind, self.attribute, data)

    @property
    def details(self):
        d = {"error": self.raw_type if self.raw_type is not None else "invalid"}
        d.update({k: v for k, v in self.options.items() if k not in MESSAGE_OPTIONS})
        return d

    @property
    def full_message(self):
        return full_message(self.record, self.attribute, self.message)

    def match(self, attribute, type=None, /, **options):
        if self.attribute != str(attribute):
            return False
        if type is not None and self.type != type:
            return False
        for k, v in options.items():
            if self.options.get(k, utils._marker) != v:
                return False
        return True

    def strict_match(self, attribute, type, /, **options):
        if not self.match(attribute, type):
            return False
        ours = {k: v for k, v in self.options.items() if k not in MESSAGE_OPTIONS}
        theirs = {k: v for k, v in options.items() if k not in MESSAGE_OPTIONS}
        return ours == theirs

    def __eq__(self, other):
        if not isinstance(other, Error):
            return NotImplemented
        return (
            self.attribute == other.attribute
            and self.type == other.type
            and self.options == other.options
        )

    def __hash__(self):
        return hash((self.attribute, str(self.type)))

    def __repr__(self):
        return f"<Error {self.attribute}:{self.type} {self.options}>"

    def serialized(self):
        return dict(
            attribute=self.attribute,
            type=self.type,
            message=self.message,
            full_message=self.full_message,
        )


def full_message(record, attribute, message):
    attribute = str(attribute)
    if attribute == "base":
        return message
    catalog = _catalog_for(record)
    kind = _kind_for(record)
    name = catalog.human_attribute_name(kind, attribute)
    return utils.interpolate(
        catalog.full_message_format, dict(attribute=name, message=message)
    )


class Errors:
    """The error collection of one record, ordered by insertion."""

    def __init__(self, record=None):
        self.record = record
        self._errors = []

    @property
    def errors(self):
        return list(self._errors)

    def add(self, attribute, type="invalid", /, message=None, **options):
        if message is not None:
            options["message"] = message
        error = Error(self.record, attribute, type, **options)
        self._errors.append(error)
        return error

    def import_error(self, error, **override):
        attribute = override.pop("attribute", error.attribute)
        options = dict(error.options)
        options.update(override)
        imported = Error(self.record, attribute, error.raw_type, **options)
        self._errors.append(imported)
        return imported

    def merge(self, other):
        if other is self:
            return self
        for error in other:
            self.import_error(error)
        return self

    def copy(self):
        dup = Errors(self.record)
        dup._errors = list(self._errors)
        return dup

    def where(self, attribute, type=None, /, **options):
        return [e for e in self._errors if e.match(attribute, type, **options)]

    def include(self, attribute):
        attribute = str(attribute)
        return any(e.attribute == attribute for e in self._errors)

    __contains__ = include

    def added(self, attribute, type="invalid", /, **options):
        if any(e.strict_match(attribute, type, **options) for e in self._errors):
            return True
        # literal messages also compare against the rendered text
        return isinstance(type, str) and type in self.messages_for(attribute)

    def of_kind(self, attribute, type="invalid"):
        if any(e.match(attribute, type) for e in self._errors):
            return True
        return isinstance(type, str) and type in self.messages_for(attribute)

    def delete(self, attribute, type=None, /, **options):
        removed = self.where(attribute, type, **options)
        if not removed:
            return []
        gone = {id(e) for e in removed}
        self._errors = [e for e in self._errors if id(e) not in gone]
        return [e.message for e in removed]

    def clear(self):
        self._errors = []

    def __getitem__(self, attribute):
        return self.messages_for(attribute)

    def __iter__(self):
        return iter(list(self._errors))

    def __len__(self):
        return len(self._errors)

    @property
    def size(self):
        return len(self._errors)

    count = size

    @property
    def empty(self):
        return not self._errors

    @property
    def catalog(self):
        return _catalog_for(self.record)

    @property
    def attribute_names(self):
        names = {}
        for e in self._errors:
            names[e.attribute] = 1
        return list(names)

    def group_by_attribute(self):
        grouped = {}
        for e in self._errors:
            grouped.setdefault(e.attribute, []).append(e)
        return grouped

    def messages_for(self, attribute):
        return [e.message for e in self.where(attribute)]

    def full_messages_for(self, attribute):
        return [e.full_message for e in self.where(attribute)]

    @property
    def messages(self):
        result = {}
        for e in self._errors:
            result.setdefault(e.attribute, []).append(e.message)
        return result

    @property
    def details(self):
        result = {}
        for e in self._errors:
            result.setdefault(e.attribute, []).append(e.details)
        return result

    @property
    def full_messages(self):
        return [e.full_message for e in self._errors]

    to_a = full_messages

    def full_message(self, attribute, message):
        return full_message(self.record, attribute, message)

    def generate_message(self, attribute, type="invalid", /, **options):
        return Error(self.record, attribute, type, **options).message

    def to_dict(self, full_messages=False):
        if not full_messages:
            return self.messages
        result = {}
        for e in self._errors:
            result.setdefault(e.attribute, []).append(e.full_message)
        return result

    def serialized(self):
        return self.to_dict()

    def __repr__(self):
        return f"<Errors {self.messages}>"

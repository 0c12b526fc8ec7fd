"""Validators and the registry ``validates`` resolves option keys through.

A validator is configured once, at declaration time, and then run against
each record being validated. ``EachValidator`` subclasses check one
attribute at a time; plain ``Validator`` subclasses look at the whole
record.
"""
import inspect
import logging
import math
import operator
import re
from decimal import Decimal, InvalidOperation

from . import errors
from . import exceptions
from . import utils

log = logging.getLogger(__name__)
validator_map = {}


def register_validator(name, cls=None):
    """Register cls under name so ``validates(attr, name=...)`` finds it.

    Usable as a decorator: ``@register_validator("email")``."""

    def _register(cls):
        if not (inspect.isclass(cls) and issubclass(cls, Validator)):
            raise exceptions.ConfigurationError(
                f"{cls!r} must be a Validator subclass to register as {name}"
            )
        validator_map[name] = cls
        if cls.__dict__.get("kind") is None:
            cls.kind = name
        return cls

    if cls is not None:
        return _register(cls)
    return _register


def lookup(name):
    cls = validator_map.get(name)
    if cls is None:
        raise exceptions.UnknownValidator(f"Unknown validator: {name!r}")
    return cls


def _evaluate(record, condition):
    if isinstance(condition, str):
        attr = getattr(record, condition)
        if callable(attr):
            return attr()
        return attr
    return condition(record)


def resolve(record, value, attributes=False):
    """Resolve an option value against a record.

    Callables are called with the record; with ``attributes`` set a string
    naming an attribute of the record reads that attribute."""
    if callable(value) and not inspect.isclass(value):
        return value(record)
    if attributes and isinstance(value, str) and hasattr(record, value):
        return getattr(record, value)
    return value


class Validator:
    kind = None

    def __init__(self, **options):
        if "if" in options:
            options["if_"] = options.pop("if")
        self.options = options
        self.check_validity()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.options}>"

    def check_validity(self):
        pass

    @property
    def contexts(self):
        return [str(c) for c in utils.as_list(self.options.get("on"))]

    def should_run(self, record, context=None):
        on = self.contexts
        if on:
            wanted = set(str(c) for c in utils.as_list(context))
            if not wanted.intersection(on):
                return False
        for cond in utils.as_list(self.options.get("if_")):
            if not _evaluate(record, cond):
                return False
        for cond in utils.as_list(self.options.get("unless")):
            if _evaluate(record, cond):
                return False
        return True

    def run(self, record, context=None):
        if not self.should_run(record, context):
            return False
        self.validate(record)
        return True

    def validate(self, record):
        raise NotImplementedError("Subclasses must implement validate(record)")

    def error(self, record, attribute, type="invalid", /, message=None, **options):
        if message is None:
            message = self.options.get("message")
        if message is not None:
            options["message"] = message
        strict = self.options.get("strict")
        if strict:
            failure = errors.Error(record, attribute, type, **options)
            exc = exceptions.StrictValidationFailed
            if inspect.isclass(strict) and issubclass(strict, Exception):
                exc = strict
            raise exc(failure.full_message)
        return record.errors.add(attribute, type, **options)

    def serialized(self):
        data = dict(kind=self.kind or self.__class__.__name__)
        data.update(self.options)
        return data


class EachValidator(Validator):
    """Validate each named attribute through ``validate_each``."""

    def __init__(self, attributes=None, **options):
        self.attributes = [str(a) for a in utils.as_list(attributes)]
        if not self.attributes:
            raise exceptions.ConfigurationError(
                f"{self.__class__.__name__} needs at least one attribute"
            )
        super().__init__(**options)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.attributes} {self.options}>"

    def validate(self, record):
        for attribute in self.attributes:
            value = record.read_attribute(attribute)
            if value is None and self.options.get("allow_nil"):
                continue
            if self.options.get("allow_blank") and utils.is_blank(value):
                continue
            self.validate_each(record, attribute, value)

    def validate_each(self, record, attribute, value):
        raise NotImplementedError(
            "Subclasses must implement validate_each(record, attribute, value)"
        )

    def serialized(self):
        data = super().serialized()
        data["attributes"] = list(self.attributes)
        return data


class BlockValidator(EachValidator):
    def __init__(self, attributes, block, **options):
        self.block = block
        super().__init__(attributes, **options)

    def validate_each(self, record, attribute, value):
        self.block(record, attribute, value)


class MethodValidator(Validator):
    """Run a record method (or any callable taking the record)."""

    def __init__(self, method, **options):
        self.method = method
        super().__init__(**options)

    def validate(self, record):
        if isinstance(self.method, str):
            return getattr(record, self.method)()
        return self.method(record)

    def serialized(self):
        data = super().serialized()
        data["method"] = getattr(self.method, "__name__", str(self.method))
        return data


@register_validator("presence")
class PresenceValidator(EachValidator):
    def validate_each(self, record, attribute, value):
        if utils.is_blank(value):
            self.error(record, attribute, "blank")


@register_validator("absence")
class AbsenceValidator(EachValidator):
    def validate_each(self, record, attribute, value):
        if not utils.is_blank(value):
            self.error(record, attribute, "present")


def _bounds(value):
    if isinstance(value, range):
        if value.step != 1:
            raise exceptions.ConfigurationError(f"range {value} must have a step of 1")
        return value.start, value.stop - 1
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    raise exceptions.ConfigurationError(
        f"expected a range or (minimum, maximum) pair, got {value!r}"
    )


@register_validator("length")
class LengthValidator(EachValidator):
    MESSAGES = {"is": "wrong_length", "minimum": "too_short", "maximum": "too_long"}
    CHECKS = {"is": operator.eq, "minimum": operator.ge, "maximum": operator.le}

    def __init__(self, attributes=None, **options):
        span = options.pop("in", None)
        span = options.pop("within", span)
        if span is not None:
            options["minimum"], options["maximum"] = _bounds(span)
        if (
            options.get("allow_blank") is False
            and options.get("minimum") is None
            and options.get("is") is None
        ):
            options["minimum"] = 1
        super().__init__(attributes, **options)

    def check_validity(self):
        keys = [k for k in self.CHECKS if self.options.get(k) is not None]
        if not keys:
            raise exceptions.ConfigurationError(
                "length needs one of minimum, maximum, is, in or within"
            )
        for k in keys:
            v = self.options[k]
            if callable(v):
                continue
            if not isinstance(v, int) or isinstance(v, bool) or v < 0:
                raise exceptions.ConfigurationError(
                    f"length {k} must be a non-negative integer or callable, got {v!r}"
                )

    def validate_each(self, record, attribute, value):
        if value is None:
            size = 0
        elif hasattr(value, "__len__"):
            size = len(value)
        else:
            size = len(str(value))
        for key, check in self.CHECKS.items():
            bound = self.options.get(key)
            if bound is None:
                continue
            bound = resolve(record, bound)
            if not check(size, bound):
                type = self.MESSAGES[key]
                message = self.options.get(type, self.options.get("message"))
                self.error(record, attribute, type, message=message, count=bound)


_integer = re.compile(r"^[+-]?\d+$")


def _span_text(value):
    if isinstance(value, range):
        return f"{value.start}..{value.stop - 1}"
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return f"{value[0]}..{value[1]}"
    return str(value)


def _in_span(value, span):
    lo, hi = _bounds(span)
    return lo <= value <= hi


@register_validator("numericality")
class NumericalityValidator(EachValidator):
    COMPARISONS = {
        "greater_than": operator.gt,
        "greater_than_or_equal_to": operator.ge,
        "equal_to": operator.eq,
        "less_than": operator.lt,
        "less_than_or_equal_to": operator.le,
        "other_than": operator.ne,
    }

    def check_validity(self):
        for key in self.COMPARISONS:
            v = self.options.get(key)
            if v is None or callable(v) or isinstance(v, str):
                continue
            if isinstance(v, bool) or not isinstance(v, (int, float, Decimal)):
                raise exceptions.ConfigurationError(
                    f"numericality {key} must be a number, callable or attribute name"
                )
        span = self.options.get("in")
        if span is not None and not callable(span):
            _bounds(span)

    @staticmethod
    def parse(value):
        """Return the numeric value or raise ValueError with the error type."""
        if isinstance(value, bool) or value is None:
            raise ValueError("not_a_number")
        if isinstance(value, (int, float, Decimal)):
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError("not_a_number")
            if isinstance(value, Decimal) and not value.is_finite():
                raise ValueError("not_a_number")
            number = value
        else:
            text = str(value).strip()
            if _integer.match(text):
                number = int(text)
            else:
                try:
                    number = Decimal(text)
                except InvalidOperation:
                    raise ValueError("not_a_number")
                if not number.is_finite():
                    raise ValueError("not_a_number")
        return number

    def validate_each(self, record, attribute, value):
        try:
            number = self.parse(value)
        except ValueError as e:
            self.error(record, attribute, e.args[0], value=value)
            return

        only_integer = resolve(record, self.options.get("only_integer", False))
        if only_integer and not self._is_integer(value, number):
            self.error(record, attribute, "not_an_integer", value=value)
            return

        for key, check in self.COMPARISONS.items():
            if self.options.get(key) is None:
                continue
            bound = self._bound(record, key)
            if bound is None:
                continue
            try:
                ok = check(number, bound)
            except TypeError:
                raise exceptions.ConfigurationError(
                    f"numericality {key} of {record.kind}.{attribute} "
                    f"is not a number: {bound!r}"
                )
            if not ok:
                self.error(record, attribute, key, value=value, count=bound)

        span = self.options.get("in")
        if span is not None:
            span = resolve(record, span)
            if not _in_span(number, span):
                self.error(record, attribute, "in", value=value, count=_span_text(span))

        if self.options.get("odd") and not self._parity(number, 1):
            self.error(record, attribute, "odd", value=value)
        if self.options.get("even") and not self._parity(number, 0):
            self.error(record, attribute, "even", value=value)

    def _bound(self, record, key):
        """Resolve a comparison bound; a string names a record attribute."""
        bound = self.options[key]
        if not isinstance(bound, str):
            return resolve(record, bound)
        if not hasattr(record, bound):
            raise exceptions.ConfigurationError(
                f"numericality {key} names {bound!r}, which {record.kind} does not have"
            )
        bound = getattr(record, bound)
        if callable(bound):
            bound = bound()
        return bound

    @staticmethod
    def _is_integer(raw, number):
        if isinstance(raw, str):
            return bool(_integer.match(raw.strip()))
        if isinstance(number, int):
            return True
        return False

    @staticmethod
    def _parity(number, remainder):
        if number != int(number):
            return False
        return int(number) % 2 == remainder


@register_validator("format")
class FormatValidator(EachValidator):
    def check_validity(self):
        has_with = self.options.get("with") is not None
        has_without = self.options.get("without") is not None
        if has_with == has_without:
            raise exceptions.ConfigurationError(
                "format needs exactly one of the with or without options"
            )
        for key in ("with", "without"):
            v = self.options.get(key)
            if v is None or callable(v) or isinstance(v, re.Pattern):
                continue
            if not isinstance(v, str):
                raise exceptions.ConfigurationError(
                    f"format {key} must be a regular expression or callable"
                )
            try:
                self.options[key] = re.compile(v)
            except re.error as e:
                raise exceptions.ConfigurationError(f"format {key} {v!r}: {e}")

    def _pattern(self, record, key):
        pattern = resolve(record, self.options[key])
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        return pattern

    def validate_each(self, record, attribute, value):
        text = "" if value is None else str(value)
        if self.options.get("with") is not None:
            if not self._pattern(record, "with").search(text):
                self.error(record, attribute, "invalid", value=value)
        else:
            if self._pattern(record, "without").search(text):
                self.error(record, attribute, "invalid", value=value)

    def serialized(self):
        data = super().serialized()
        for key in ("with", "without"):
            if isinstance(data.get(key), re.Pattern):
                data[key] = data[key].pattern
        return data


class ClusivityValidator(EachValidator):
    """Shared membership test of inclusion and exclusion."""

    def __init__(self, attributes=None, **options):
        if "within" in options:
            options["in"] = options.pop("within")
        super().__init__(attributes, **options)

    def check_validity(self):
        members = self.options.get("in")
        if members is None:
            raise exceptions.ConfigurationError(
                f"{self.kind} needs an in or within option"
            )
        if isinstance(members, str) or not (
            callable(members) or hasattr(members, "__contains__")
        ):
            raise exceptions.ConfigurationError(
                f"{self.kind} in must be a collection, range or callable"
            )

    def members(self, record):
        return resolve(record, self.options["in"])

    def included(self, record, value):
        members = self.members(record)
        if isinstance(value, (list, tuple, set)) and not isinstance(members, range):
            return all(v in members for v in value)
        try:
            return value in members
        except TypeError:
            return False


@register_validator("inclusion")
class InclusionValidator(ClusivityValidator):
    def validate_each(self, record, attribute, value):
        if not self.included(record, value):
            self.error(record, attribute, "inclusion", value=value)


@register_validator("exclusion")
class ExclusionValidator(ClusivityValidator):
    def validate_each(self, record, attribute, value):
        if self.included(record, value):
            self.error(record, attribute, "exclusion", value=value)


@register_validator("acceptance")
class AcceptanceValidator(EachValidator):
    def __init__(self, attributes=None, **options):
        options.setdefault("allow_nil", True)
        options.setdefault("accept", ["1", True, "true"])
        super().__init__(attributes, **options)

    def validate_each(self, record, attribute, value):
        accept = utils.as_list(self.options["accept"])
        # 1 == True, so compare types too
        if not any(type(value) is type(a) and value == a for a in accept):
            self.error(record, attribute, "accepted")


@register_validator("confirmation")
class ConfirmationValidator(EachValidator):
    def validate_each(self, record, attribute, value):
        confirmed = record.read_attribute(f"{attribute}_confirmation")
        if confirmed is None:
            return
        if not self.options.get("case_sensitive", True):
            value = str(value).casefold() if value is not None else value
            confirmed = str(confirmed).casefold()
        if value != confirmed:
            human = record.human_attribute_name(attribute)
            self.error(
                record, f"{attribute}_confirmation", "confirmation", attribute=human
            )


@register_validator("comparison")
class ComparisonValidator(EachValidator):
    COMPARISONS = NumericalityValidator.COMPARISONS

    def check_validity(self):
        if not any(self.options.get(k) is not None for k in self.COMPARISONS):
            raise exceptions.ConfigurationError(
                "comparison needs one of " + ", ".join(self.COMPARISONS)
            )

    def validate_each(self, record, attribute, value):
        if utils.is_blank(value):
            self.error(record, attribute, "blank")
            return
        for key, check in self.COMPARISONS.items():
            bound = self.options.get(key)
            if bound is None:
                continue
            bound = resolve(record, bound, attributes=True)
            try:
                ok = check(value, bound)
            except TypeError:
                self.error(record, attribute, "invalid", value=value)
                return
            if not ok:
                self.error(record, attribute, key, value=value, count=bound)


@register_validator("uniqueness")
class UniquenessValidator(EachValidator):
    """No other persisted record of the same kind shares the value.

    ``scope`` names attributes that must also match for a clash and
    ``conditions`` filters the candidate records."""

    def check_validity(self):
        scope = self.options.get("scope")
        for s in utils.as_list(scope):
            if not isinstance(s, str):
                raise exceptions.ConfigurationError(
                    f"uniqueness scope must name attributes, got {s!r}"
                )

    def _normalize(self, value):
        if isinstance(value, str) and not self.options.get("case_sensitive", True):
            return value.casefold()
        return value

    def validate_each(self, record, attribute, value):
        store = record.record_store()
        wanted = self._normalize(value)
        scope = utils.as_list(self.options.get("scope"))
        conditions = self.options.get("conditions")
        for other in store.all(record.kind):
            if other is record:
                continue
            if self._normalize(other.read_attribute(attribute)) != wanted:
                continue
            if any(other.read_attribute(s) != record.read_attribute(s) for s in scope):
                continue
            if conditions is not None and not conditions(other):
                continue
            self.error(record, attribute, "taken", value=value)
            return


def parse_validates_options(value):
    """Normalize the per validator value given to ``validates``."""
    if value is True:
        return {}
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, (list, tuple, set, frozenset, range)):
        return {"in": value}
    return {"with": value}


COMMON_OPTIONS = ("on", "if_", "if", "unless", "allow_nil", "allow_blank", "strict", "message")


def build_validators(attributes, options):
    """Return the validators a ``validates(*attributes, **options)`` call declares."""
    attributes = [str(a) for a in attributes]
    if not attributes:
        raise exceptions.ConfigurationError("validates needs at least one attribute")
    common = {k: options[k] for k in COMMON_OPTIONS if k in options}
    specific = {k: v for k, v in options.items() if k not in COMMON_OPTIONS}
    if not specific:
        raise exceptions.ConfigurationError(
            "validates needs at least one validator, e.g. presence=True"
        )
    result = []
    for key, value in specific.items():
        if value is False or value is None:
            continue
        cls = lookup(key)
        # options given to one validator win over the shared ones
        opts = dict(common)
        opts.update(parse_validates_options(value))
        result.append(cls(attributes, **opts))
    return result

"""Records: plain Python objects with declared validations.

Validations are declared on the class and run when asked for, never at
construction::

    @validates("name", presence=True, length={"maximum": 40})
    @validates("email", format=r"^[^@\\s]+@[^@\\s]+$", uniqueness=True)
    class Person(Record):
        @validation(on="create")
        def not_on_the_list(self):
            if self.email in BANNED:
                self.errors.add("email", "exclusion")

    person = Person(name="", email="x@example.com")
    person.save()              # False, person.errors["name"] == ["can't be blank"]
    person.save_strict()       # raises RecordInvalid

Records may also be dataclasses deriving from ``Record``.
"""
import logging

from . import config
from . import errors as errors_impl
from . import exceptions
from . import utils
from . import validators as validators_impl

log = logging.getLogger(__name__)

_VALIDATION_MARK = "__modelcheck_validation__"
_CALLBACK_MARK = "__modelcheck_callback__"
HOOKS = ("before_validation", "after_validation")


def _mark_with(attr, value_for):
    def decorator(method=None, **options):
        def mark(fn):
            setattr(fn, attr, value_for(options))
            return fn

        if method is not None:
            return mark(method)
        return mark

    return decorator


# @validation or @validation(on="create", if_="paid") on a record method
validation = _mark_with(_VALIDATION_MARK, lambda options: options)

before_validation = _mark_with(
    _CALLBACK_MARK, lambda options: ("before_validation", options)
)
after_validation = _mark_with(
    _CALLBACK_MARK, lambda options: ("after_validation", options)
)


def validates(*attributes, **options):
    """Class decorator form of ``Record.validates``."""

    def decorator(cls):
        return cls.validates(*attributes, **options)

    return decorator


def validates_with(*validator_classes, **options):
    """Class decorator form of ``Record.validates_with``."""

    def decorator(cls):
        return cls.validates_with(*validator_classes, **options)

    return decorator


class Record:
    kind = None
    id = None
    # class level overrides of the configured store and catalog
    datastore = None
    message_catalog = None

    _validators = []
    _callbacks = {hook: [] for hook in HOOKS}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("kind") is None:
            cls.kind = cls.__name__
        cls._validators = list(cls._validators)
        cls._callbacks = {hook: list(cbs) for hook, cbs in cls._callbacks.items()}
        known = {
            v.method
            for v in cls._validators
            if isinstance(v, validators_impl.MethodValidator)
        }
        for name, attr in list(cls.__dict__.items()):
            options = getattr(attr, _VALIDATION_MARK, None)
            if options is not None and name not in known:
                cls._validators.append(
                    validators_impl.MethodValidator(name, **dict(options))
                )
            marked = getattr(attr, _CALLBACK_MARK, None)
            if marked is not None:
                hook, options = marked
                callback = validators_impl.MethodValidator(name, **dict(options))
                callbacks = cls._callbacks[hook]
                # an override replaces the inherited callback of the same name
                for i, cb in enumerate(callbacks):
                    if cb.method == name:
                        callbacks[i] = callback
                        break
                else:
                    callbacks.append(callback)

    def __init__(self, **attributes):
        self.assign_attributes(**attributes)

    def __repr__(self):
        return f"<{self.kind} id={self.id} {self.attributes()}>"

    # -- declarations

    @classmethod
    def validates(cls, *attributes, **options):
        cls._validators.extend(validators_impl.build_validators(attributes, options))
        return cls

    @classmethod
    def validates_with(cls, *validator_classes, **options):
        if not validator_classes:
            raise exceptions.ConfigurationError("validates_with needs a validator class")
        attributes = options.pop("attributes", None)
        for vc in validator_classes:
            if issubclass(vc, validators_impl.EachValidator):
                validator = vc(attributes, **dict(options))
            else:
                if attributes is not None:
                    options["attributes"] = attributes
                validator = vc(**dict(options))
            cls._validators.append(validator)
        return cls

    @classmethod
    def validates_each(cls, *attributes, **options):
        def decorator(fn):
            cls._validators.append(
                validators_impl.BlockValidator(attributes, fn, **options)
            )
            return fn

        return decorator

    @classmethod
    def add_validation(cls, method, **options):
        cls._validators.append(validators_impl.MethodValidator(method, **options))
        return cls

    @classmethod
    def add_callback(cls, hook, method, **options):
        if hook not in HOOKS:
            raise exceptions.ConfigurationError(f"Unknown callback {hook}")
        cls._callbacks[hook].append(validators_impl.MethodValidator(method, **options))
        return cls

    @classmethod
    def validators(cls):
        return list(cls._validators)

    @classmethod
    def validators_on(cls, attribute):
        attribute = str(attribute)
        return [
            v for v in cls._validators if attribute in getattr(v, "attributes", ())
        ]

    # -- naming and collaborators

    @classmethod
    def catalog(cls):
        if cls.message_catalog is not None:
            return cls.message_catalog
        return config.get_config().catalog

    @classmethod
    def human_attribute_name(cls, attribute):
        return cls.catalog().human_attribute_name(cls.kind, attribute)

    @classmethod
    def model_name(cls):
        return cls.catalog().human_model_name(cls.kind)

    @classmethod
    def record_store(cls):
        if cls.datastore is not None:
            return cls.datastore
        return config.get_config().store

    # -- attributes

    def read_attribute(self, name):
        if "." in name:
            return utils.prop_get(self, name)
        return getattr(self, name, None)

    def assign_attributes(self, **attributes):
        for k, v in attributes.items():
            setattr(self, k, v)
        return self

    def attributes(self):
        data = {}
        if self.id is not None:
            data["id"] = self.id
        for k, v in vars(self).items():
            if not k.startswith("_"):
                data[k] = v
        return data

    def serialized(self):
        data = dict(kind=self.kind)
        data.update(self.attributes())
        return data

    # -- state

    @property
    def errors(self):
        errors = self.__dict__.get("_errors")
        if errors is None:
            errors = self.__dict__["_errors"] = errors_impl.Errors(self)
        return errors

    @property
    def persisted(self):
        return self.__dict__.get("_persisted", False)

    @property
    def destroyed(self):
        return self.__dict__.get("_destroyed", False)

    @property
    def new_record(self):
        return not self.persisted and not self.destroyed

    @property
    def validation_context(self):
        return self.__dict__.get("_validation_context")

    # -- validation

    def _default_context(self):
        return "update" if self.persisted else "create"

    def _run_callbacks(self, hook, context):
        for cb in type(self)._callbacks[hook]:
            cb.run(self, context)

    def valid(self, context=None):
        if context is None:
            context = self._default_context()
        self.__dict__["_validation_context"] = context
        try:
            self.errors.clear()
            self._run_callbacks("before_validation", context)
            for validator in type(self)._validators:
                validator.run(self, context)
            self._run_callbacks("after_validation", context)
        finally:
            self.__dict__["_validation_context"] = None
        log.debug(f"Validated {self.kind} on {context}: {len(self.errors)} error(s)")
        return self.errors.empty

    def invalid(self, context=None):
        return not self.valid(context)

    def validate_strict(self, context=None):
        if not self.valid(context):
            raise exceptions.RecordInvalid(self)
        return self

    # -- persistence

    def _persist(self):
        store = self.record_store()
        if self.id is None:
            self.id = store.next_id(self.kind)
        store.add(self)
        self.__dict__["_persisted"] = True

    def save(self, validate=True, context=None):
        if self.destroyed:
            log.info(f"Refusing to save destroyed {self.kind} {self.id}")
            return False
        if validate and not self.valid(context):
            log.info(
                f"{self.kind} not saved: {'; '.join(self.errors.full_messages)}"
            )
            return False
        self._persist()
        return True

    def save_strict(self, validate=True, context=None):
        if self.destroyed:
            raise exceptions.RecordNotSaved(
                f"Failed to save destroyed {self.kind} {self.id}", self
            )
        if not self.save(validate=validate, context=context):
            raise exceptions.RecordInvalid(self)
        return self

    @classmethod
    def create(cls, **attributes):
        record = utils.build(cls, attributes)
        record.save()
        return record

    @classmethod
    def create_strict(cls, **attributes):
        record = utils.build(cls, attributes)
        return record.save_strict()

    def update(self, **attributes):
        self.assign_attributes(**attributes)
        return self.save()

    def update_strict(self, **attributes):
        self.assign_attributes(**attributes)
        return self.save_strict()

    def destroy(self):
        if self.persisted:
            self.record_store().remove(self)
        self.__dict__["_persisted"] = False
        self.__dict__["_destroyed"] = True
        return self

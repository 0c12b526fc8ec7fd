import functools
import itertools
import json
import re
import string

from dataclasses import fields, is_dataclass

import jmespath
import jsonmerge
import yaml

_marker = object()


class AttrAccess(dict):
    def __getattr__(self, key):
        v = self[key]
        if isinstance(v, dict):
            v = self.__class__(v)
        return v

    def __getitem__(self, key):
        try:
            v = super().__getitem__(key)
        except KeyError as e:
            raise AttributeError(key)
        if isinstance(v, dict):
            v = self.__class__(v)
        return v

    def __setattr__(self, key, value):
        self[key] = value

    def serialized(self):
        return dict(self)


def AttrAccess_representer(dumper, data):
    return dumper.represent_dict(dict(data))


yaml.add_representer(AttrAccess, AttrAccess_representer)
yaml.add_representer(AttrAccess, AttrAccess_representer, Dumper=yaml.SafeDumper)


def nested_get(obj, path=None, default=None):
    if not path:
        return obj
    try:
        result = jmespath.search(path, obj)
    except IndexError:
        return default
    if result is None:
        return default
    return result


def prop_get(obj, path, default=None, sep="."):
    if not path:
        return obj
    o = obj
    for part in path.split(sep):
        try:
            o = getattr(o, part)
        except (AttributeError, KeyError):
            try:
                if part not in o:
                    return default
            except TypeError:
                return default
            o = o[part]
    return o


def deep_merge(base, head, schema=None):
    """Merge head over base, returning a new structure.

    Dicts merge recursively; the jsonmerge schema can switch
    individual keys to other strategies (append for lists of rules)."""
    if schema is None:
        schema = {}
    return jsonmerge.merge(base, head, schema=schema)


class _KeepMissing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


_formatter = string.Formatter()


def interpolate(template, context=None):
    """str.format with unknown fields left in place.

    Catalog messages come from user editable YAML so a typo in a field
    name should show up in the output rather than raise."""
    if not isinstance(template, str):
        return template
    context = _KeepMissing(context or {})
    try:
        return template.format_map(context)
    except (AttributeError, IndexError, ValueError):
        return template


_underscore = re.compile(r"_+")


def humanize(name):
    if name is None:
        return ""
    name = str(name)
    if name.endswith("_id") and len(name) > 3:
        name = name[:-3]
    name = _underscore.sub(" ", name).strip()
    if not name:
        return ""
    return name[0].upper() + name[1:]


def underscore(name):
    s = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s).lower()


def is_blank(value):
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (bool, int, float)):
        return False
    try:
        return len(value) == 0
    except TypeError:
        return False


def as_list(value):
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def filter_select(item, query):
    for k, expect in query.items():
        try:
            v = prop_get(item, k, _marker)
        except (AttributeError, TypeError):
            v = getattr(item, k, _marker)
        if v != expect:
            return False
    return True


def filter_iter(lst, query=None, reversed=False, predicate=filter_select, **kwargs):
    if not query:
        query = {}
        query.update(kwargs)
    selector = filter
    if reversed:
        selector = itertools.filterfalse
    predicate = functools.partial(predicate, query=query)
    return selector(predicate, lst)


def pick(lst, query=None, default=None, **kwargs):
    if not query:
        query = {}
        query.update(kwargs)

    for item in lst:
        r = filter_select(item, query)
        if not r:
            continue
        return item
    return default


def _dumper(obj):
    m = getattr(obj, "serialized", None)
    if m:
        if callable(m):
            return m()
        else:
            return m
    if isinstance(obj, (set, frozenset, tuple, range)):
        return list(obj)
    return str(obj)


def dump(obj):
    """Dump objects as JSON. If objects have a serialized method or property it
    will be used in the resulting output"""
    return json.dumps(obj, default=_dumper, indent=2)


def apply_to_dataclass(cls, **kwargs):
    # filter kwargs such that only fields are present
    args = {}
    ff = fields(cls)
    for k in kwargs:
        f = pick(ff, name=k)
        if f and f.init is not False:
            args[k] = kwargs[k]
    return cls(**args)


def build(cls, data):
    """Construct cls from a mapping, honouring dataclass fields when present.

    Keys that are not init fields of a dataclass are assigned afterwards so
    that virtual attributes (confirmations, acceptances) survive."""
    data = dict(data)
    if is_dataclass(cls):
        obj = apply_to_dataclass(cls, **data)
        names = {f.name for f in fields(cls) if f.init is not False}
        for k, v in data.items():
            if k not in names:
                setattr(obj, k, v)
        return obj
    return cls(**data)

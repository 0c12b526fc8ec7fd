import logging
from io import IOBase
from pathlib import Path

import yaml

from . import exceptions
from . import utils

log = logging.getLogger(__package__)
_marker = object()

DEFAULT_CATALOG = Path(__file__).parent / "locale" / "en.yaml"


def _read(source):
    if isinstance(source, dict):
        return source
    if isinstance(source, IOBase):
        return yaml.safe_load(source) or {}
    p = Path(source)
    if not p.exists():
        raise exceptions.ConfigurationError(f"No message catalog at {p}")
    with open(p, "r", encoding="utf-8") as fp:
        try:
            return yaml.safe_load(fp) or {}
        except yaml.YAMLError as e:
            raise exceptions.ConfigurationError(f"Error processing catalog {p}: {e}")


class Catalog:
    """Error message catalog.

    Messages are looked up from the most to the least specific key

        errors.models.<kind>.attributes.<attribute>.<type>
        errors.models.<kind>.<type>
        errors.messages.<type>

    and fall back to the type itself, so ``errors.add("name", "looks odd")``
    reads naturally.
    """

    def __init__(self, data=None):
        self.data = dict(data or {})

    @classmethod
    def default(cls):
        catalog = cls()
        catalog.load(DEFAULT_CATALOG)
        return catalog

    def load(self, source):
        data = _read(source)
        if not isinstance(data, dict):
            raise exceptions.ConfigurationError(
                f"Message catalog must be a mapping, got {type(data).__name__}"
            )
        if not isinstance(source, dict):
            log.debug(f"Merging message catalog {source}")
        self.data = utils.deep_merge(self.data, data)
        return self

    def get(self, path, default=None):
        found = self._walk(path.split("."))
        if found is None:
            return default
        return found

    def lookup(self, type, kind=None, attribute=None, default=_marker):
        candidates = []
        if kind:
            kind = self.kind_key(kind)
            if attribute:
                candidates.append(
                    ["errors", "models", kind, "attributes", str(attribute), type]
                )
            candidates.append(["errors", "models", kind, type])
        candidates.append(["errors", "messages", type])
        for path in candidates:
            found = self._walk(path)
            if isinstance(found, str):
                return found
        if default is _marker:
            return type
        return default

    def _walk(self, path):
        o = self.data
        for part in path:
            if not isinstance(o, dict) or part not in o:
                return None
            o = o[part]
        return o

    def has(self, type):
        return isinstance(self._walk(["errors", "messages", type]), str)

    def message(self, type, kind=None, attribute=None, values=None):
        text = self.lookup(type, kind=kind, attribute=attribute)
        return utils.interpolate(text, values)

    @staticmethod
    def kind_key(kind):
        if not isinstance(kind, str):
            kind = getattr(kind, "kind", None) or kind.__name__
        return utils.underscore(kind)

    def human_attribute_name(self, kind, attribute):
        attribute = str(attribute)
        if kind:
            name = self._walk(["attributes", self.kind_key(kind), attribute])
            if isinstance(name, str):
                return name
        return utils.humanize(attribute)

    def human_model_name(self, kind):
        key = self.kind_key(kind)
        name = self._walk(["models", key])
        if isinstance(name, str):
            return name
        return utils.humanize(key).lower()

    @property
    def full_message_format(self):
        return self.get("errors.format") or "{attribute} {message}"

    def serialized(self):
        return dict(self.data)

from io import IOBase
import logging
from pathlib import Path

import jsonschema
import yaml

from . import exceptions
from . import record
from . import utils

log = logging.getLogger(__package__)
schema_map = {}

RULES_KIND = "Rules"


class Schema(dict):
    def validate(self, document):
        jsonschema.validate(document, self, format_checker=jsonschema.FormatChecker())


def register_class(cls):
    """Make a Record class available to rule and data documents by its kind."""
    register(cls.kind, cls)
    return cls


def register(kind, cls=None):
    if cls is None:
        cls = type(kind, (record.Record,), {"kind": kind})
        log.debug(f"Generated record class for {kind}")
    elif not issubclass(cls, record.Record):
        raise exceptions.ConfigurationError(f"{cls!r} is not a Record class")
    schema_map[kind] = cls
    return cls


def lookup(kind, default=None):
    return schema_map.get(kind, default)


def ensure_kind(kind):
    cls = lookup(kind)
    if cls is None:
        cls = register(kind)
    return cls


strprop = dict(type="string")
strlist = {"type": "array", "items": strprop, "minItems": 1}

RULES_SCHEMA = Schema(
    {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "kind": {"const": RULES_KIND},
            "name": strprop,
            "target": strprop,
            "validates": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "attributes": {"oneOf": [strprop, strlist]},
                        "on": {"oneOf": [strprop, strlist]},
                        "message": strprop,
                        "allow_nil": {"type": "boolean"},
                        "allow_blank": {"type": "boolean"},
                        "strict": {"type": "boolean"},
                    },
                    "required": ["attributes"],
                    "minProperties": 2,
                },
            },
            "attributes": {"type": "object", "additionalProperties": strprop},
            "messages": {"type": "object"},
        },
        "required": ["kind", "target", "validates"],
    }
)

# several documents for one target concatenate their rules
RULES_MERGE = {
    "properties": {
        "validates": {"mergeStrategy": "append"},
        "attributes": {"mergeStrategy": "objectMerge"},
        "messages": {"mergeStrategy": "objectMerge"},
    }
}


def read_documents(fh):
    """Yield (document, source name) for each YAML document in fh."""
    if isinstance(fh, (str, Path)):
        fp = open(fh, "r", encoding="utf-8")
    elif not isinstance(fh, IOBase):
        raise ValueError(f"expected filename or file object {fh}")
    else:
        fp = fh
    name = getattr(fp, "name", "<stream>")
    try:
        for obj in yaml.load_all(fp, Loader=yaml.SafeLoader):
            if obj is None:
                continue
            if not isinstance(obj, dict):
                raise exceptions.ConfigurationError(
                    f"Error processing {name}: expected a mapping, got {type(obj).__name__}"
                )
            yield utils.AttrAccess(obj), name
    except yaml.MarkedYAMLError as e:
        raise exceptions.ConfigurationError(
            f"Error processing {name}: {e.problem} {e.problem_mark}"
        )
    finally:
        fp.close()


def validate_rules(doc, src=None):
    try:
        RULES_SCHEMA.validate(dict(doc))
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) or "<document>"
        raise exceptions.ConfigurationError(
            f"Invalid rules {doc.get('name', doc.get('target'))} from {src} at {path}: {e.message}"
        )
    return doc


def merge_rules(documents):
    """Merge rule documents by target, keeping first-seen order."""
    merged = {}
    for doc in documents:
        target = doc["target"]
        base = merged.get(target, {})
        merged[target] = utils.deep_merge(base, dict(doc), schema=RULES_MERGE)
    return merged


def apply_rules(rules):
    cls = ensure_kind(rules["target"])
    kind_key = cls.catalog().kind_key(cls.kind)
    names = rules.get("attributes")
    overrides = rules.get("messages")
    if names or overrides:
        data = {}
        if names:
            data["attributes"] = {kind_key: dict(names)}
        if overrides:
            data["errors"] = {"models": {kind_key: dict(overrides)}}
        cls.catalog().load(data)
    for entry in rules["validates"]:
        entry = dict(entry)
        attributes = utils.as_list(entry.pop("attributes"))
        cls.validates(*attributes, **entry)
    log.debug(f"Applied {len(rules['validates'])} rule(s) to {cls.kind}")
    return cls


def load_rules(fh):
    documents = []
    for doc, src in read_documents(fh):
        if doc.get("kind") != RULES_KIND:
            log.warning(f"Skipping {doc.get('kind')} document in rules file {src}")
            continue
        documents.append(validate_rules(doc, src))
    return [apply_rules(rules) for rules in merge_rules(documents).values()]


def _select(doc, path):
    """Records held by a document; path is a jmespath expression."""
    if not path:
        return [doc]
    found = utils.nested_get(dict(doc), path, [])
    if isinstance(found, dict):
        return [found]
    return [item for item in found if isinstance(item, dict)]


def load_records(fh, path=None, kind=None):
    """Build a record from each data document in fh.

    ``path`` selects nested records inside each document and ``kind`` names
    the record kind for records that don't carry one."""
    records = []
    for doc, src in read_documents(fh):
        if doc.get("kind") == RULES_KIND:
            log.warning(f"Skipping rules document {doc.get('name')} in data file {src}")
            continue
        for data in _select(doc, path):
            record_kind = data.get("kind") or kind
            if not record_kind:
                raise exceptions.ConfigurationError(
                    f"Document without a kind in {src}"
                )
            cls = ensure_kind(record_kind)
            attrs = {k: v for k, v in data.items() if k != "kind"}
            records.append(utils.build(cls, attrs))
    return records


def load_config(config_dir):
    p = Path(config_dir)
    if not p.exists():
        raise OSError(f"No rules at {p}")
    kinds = []
    if p.is_dir():
        for yml in sorted(p.rglob("*.yaml")):
            log.debug(f"Loading rules from {yml}")
            kinds.extend(load_rules(yml))
    elif p.is_file():
        kinds.extend(load_rules(p))
    else:
        raise OSError(f"Unsupported rules file {p}")
    return kinds

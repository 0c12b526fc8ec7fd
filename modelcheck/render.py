import io
import logging
import sys

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List

import yaml

from . import template as template_impl
from . import utils

log = logging.getLogger(__package__)

FORMATS = ("text", "html", "json", "yaml")
_extensions = {"text": "txt", "html": "html"}


@contextmanager
def streamer(fn_or_fp):
    closing = False
    if str(fn_or_fp) == "-":
        fn_or_fp = sys.stdout

    if isinstance(fn_or_fp, io.TextIOBase):
        fp = fn_or_fp
    else:
        fp = open(fn_or_fp, "w", encoding="utf-8")
        closing = True
    try:
        yield fp
    finally:
        if closing:
            fp.close()


def header(record):
    catalog = record.catalog()
    count = len(record.errors)
    text = catalog.get("errors.template.header") or (
        "{count} {errors} prohibited this {model} from being saved"
    )
    return utils.interpolate(
        text,
        dict(
            count=count,
            errors="error" if count == 1 else "errors",
            model=record.model_name(),
        ),
    )


def error_context(record):
    return dict(
        record=record,
        errors=record.errors,
        count=len(record.errors),
        header=header(record),
        body=record.catalog().get("errors.template.body", ""),
        full_messages=record.errors.full_messages,
        messages=record.errors.messages,
    )


def _check_format(format):
    if format not in FORMATS:
        raise ValueError(f"unknown format {format}, expected one of {FORMATS}")


def render_errors(record, format="text", template=None, env=None):
    """Render a record's errors for display.

    ``template`` names a jinja2 template (builtin name or a file:// or
    http(s):// URI) used instead of the builtin one for text and html."""
    _check_format(format)
    if format == "json":
        return utils.dump(record.errors.to_dict())
    if format == "yaml":
        return yaml.safe_dump(record.errors.to_dict(), default_flow_style=False)
    if env is None:
        env = template_impl.get_env()
    tmpl = env.get_template(template or f"errors.{_extensions[format]}")
    return tmpl.render(**error_context(record))


@dataclass
class Result:
    label: str
    record: Any
    valid: bool
    full_messages: List[str] = field(default_factory=list)
    messages: Dict[str, List[str]] = field(default_factory=dict)

    def serialized(self):
        return dict(
            label=self.label,
            kind=self.record.kind,
            valid=self.valid,
            errors=self.messages,
            full_messages=self.full_messages,
        )


def _label(record, index):
    ident = record.read_attribute("id")
    if ident is None:
        ident = record.read_attribute("name")
    if ident is None:
        ident = f"#{index}"
    return f"{record.kind}:{ident}"


def check(records, context=None):
    results = []
    for index, record in enumerate(records, 1):
        ok = record.valid(context)
        results.append(
            Result(
                label=_label(record, index),
                record=record,
                valid=ok,
                full_messages=record.errors.full_messages,
                messages=record.errors.messages,
            )
        )
        if not ok:
            log.debug(f"{results[-1].label} is invalid")
    return results


def report(results, format="text", env=None):
    _check_format(format)
    data = [r.serialized() for r in results]
    if format == "json":
        return utils.dump(data)
    if format == "yaml":
        return yaml.safe_dump(data, default_flow_style=False)
    if format == "html":
        if env is None:
            env = template_impl.get_env()
        tmpl = env.get_template("errors.html")
        return "".join(tmpl.render(**error_context(r.record)) for r in results)
    if env is None:
        env = template_impl.get_env()
    tmpl = env.get_template("report.txt")
    return tmpl.render(
        results=results,
        total=len(results),
        valid=sum(1 for r in results if r.valid),
    )


def write_report(results, fn_or_fp="-", format="text"):
    with streamer(fn_or_fp) as fp:
        fp.write(report(results, format=format))

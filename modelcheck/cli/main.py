import logging
import sys

import click
import yaml
from rich.traceback import install as install_rich_tb

from .. import exceptions
from .. import render as render_impl
from .. import schema, utils
from .clicktools import spec, using

cmd_name = __package__.split(".")[0]
log = logging.getLogger(cmd_name)


_log_levels = ["DEBUG", "INFO", "WARNING", "CRITICAL"]
_log_levels = _log_levels + [i.lower() for i in _log_levels]
common_args = [
    spec("-l", "--log-level", default="INFO", type=click.Choice(_log_levels),),
    spec(
        "--catalog",
        multiple=True,
        type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
        help="Extra message catalog merged over the defaults",
    ),
]

rules_args = [
    spec(
        "-c",
        "--rules",
        multiple=True,
        type=click.Path(exists=True, file_okay=True, dir_okay=True, readable=True),
        help="Rules file or directory of *.yaml rules",
    ),
]


@click.group()
@using(common_args)
def main(config, **kwargs):
    install_rich_tb()


@main.command()
@using(common_args, rules_args)
@click.option(
    "-f", "--format", "output_format", default="text", type=click.Choice(render_impl.FORMATS)
)
@click.option("-o", "--output", default="-")
@click.option("--context", default=None, help="Validation context, e.g. create or update")
@click.option("--path", default=None, help="jmespath selecting records inside each document")
@click.option("--kind", default=None, help="Kind for records that don't name one")
@click.argument(
    "data",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
)
def check(config, output_format, output, context, path, kind, data, **kwargs):
    """Validate the records in DATA against the loaded rules."""
    config.init()
    records = []
    for fn in data:
        records.extend(schema.load_records(fn, path=path, kind=kind))
    if not records:
        raise exceptions.ConfigurationError("No records found to check")
    results = render_impl.check(records, context=context)
    render_impl.write_report(results, output, format=output_format)
    if not all(r.valid for r in results):
        sys.exit(1)


@main.command()
@using(common_args)
def messages(config, **kwargs):
    """Print the effective message catalog."""
    config.init()
    click.echo(yaml.safe_dump(config.catalog.serialized(), default_flow_style=False))


@main.command()
@using(common_args, rules_args)
def rules(config, **kwargs):
    """List the validators declared for each kind."""
    config.init()
    declared = {}
    for cls in config.kinds:
        declared[cls.kind] = [v.serialized() for v in cls.validators()]
    click.echo(utils.dump(declared))


if __name__ == "__main__":
    main(prog_name=cmd_name, auto_envvar_prefix="MODELCHECK")

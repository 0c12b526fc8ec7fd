import logging
import os

import click
import coloredlogs

from . import messages, schema, store

cmd_name = __package__.split(".")[0]
log = logging.getLogger(cmd_name)

CATALOG_ENV = "MODELCHECK_CATALOG"


class Config:
    def __init__(self):
        self.store = store.Store()
        self.catalog = messages.Catalog.default()
        extra = os.environ.get(CATALOG_ENV)
        if extra:
            for path in extra.split(os.pathsep):
                if path:
                    self.catalog.load(path)

    def find(self, name, default=None, ctx=None):
        if not ctx:
            ctx = click.get_current_context(silent=True)
        while ctx:
            val = ctx.params.get(name)
            if val:
                return val
            ctx = ctx.parent
        return default

    def setup_logging(self):
        level = self.find("log_level", "INFO").upper()
        logging.basicConfig(level=level)

        field_styles = dict(
            asctime=dict(color=241),
            hostname=dict(color=241),
            levelname=dict(color=136, bold=True),
            programname=dict(color=234),
            name=dict(color=61),
            message=dict(),
        )

        level_styles = dict(
            spam=dict(color=240, faint=True),
            debug=dict(color=241),
            verbose=dict(color=254),
            info=dict(color=244),
            notice=dict(color=166),
            warning=dict(color=125),
            success=dict(color=64, bold=True),
            error=dict(color=160),
            critical=dict(color=160, bold=True),
        )
        coloredlogs.install(
            level=level,
            field_styles=field_styles,
            level_styles=level_styles,
            fmt="[%(name)s:%(levelname)s] [%(filename)s:%(lineno)s (%(funcName)s)] %(message)s",
        )
        logging.getLogger("jsonmerge").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    def load_catalogs(self):
        for path in self.find("catalog", ()) or ():
            self.catalog.load(path)

    def load_rules(self):
        rules = self.find("rules")
        if not rules:
            return []
        kinds = []
        for path in rules:
            kinds.extend(schema.load_config(path))
        return kinds

    def init(self):
        self.setup_logging()
        self.load_catalogs()
        self.kinds = self.load_rules()


_config = None


def get_config():
    global _config
    if _config is None:
        _config = Config()
    return _config


def _set_config(config):
    global _config
    _config = config
    return config

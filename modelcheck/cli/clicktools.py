import functools
import itertools

import click

from ..config import get_config


class spec(dict):
    def __init__(self, *args, **kwargs):
        self.args = args
        self.update(kwargs)

    def __getitem__(self, key):
        if isinstance(key, int):
            # can return IndexError
            return self.args[key]
        return super().__getitem__(key)

    def __getattr__(self, key):
        return super().__getitem__(key)

    def __getstate__(self):
        return self.__dict__

    def __repr__(self):
        return f"<spec {self.args} {super().__repr__()}>"


def using(*cmds):
    """Attach the option specs to a command and pass it the process config."""

    def _add_option(func, option):
        return click.option(*option.args, expose_value=True, **option)(func)

    def decorator(f):
        @functools.wraps(f)
        def with_config(*args, **kwargs):
            return f(get_config(), *args, **kwargs)

        for argspecs in itertools.chain(cmds):
            for option in argspecs:
                with_config = _add_option(with_config, option)
        return with_config

    return decorator

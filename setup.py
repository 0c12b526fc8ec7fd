#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
import configparser
from pathlib import Path  # noqa

README = Path("README.md")
long_description = ""
if README.exists():
    long_description = README.read_text(encoding="utf-8")


def _pipfile(fn="Pipfile", section="packages"):
    p = Path(fn)
    cfg = configparser.ConfigParser()
    cfg.read_file(p.open())
    pkgs = list(cfg[section].keys())
    return pkgs


install_requires = _pipfile()

setup(
    name="modelcheck",
    version="0.1.0",
    description="Declarative validations and error collections for Python records",
    packages=find_packages(exclude=["ez_setup", "tests"]),
    package_data={"modelcheck": ["py.typed", "locale/*.yaml"]},
    include_package_data=True,
    python_requires=">=3.8.0",
    keywords=["validation", "records", "errors"],
    zip_safe=False,
    install_requires=install_requires,
    extras_require={"test": _pipfile(section="dev-packages")},
    long_description=long_description,
    long_description_content_type="text/markdown",
    entry_points={"console_scripts": ["modelcheck = modelcheck.cli.main:main"]},
)

#!/usr/bin/env python
# -*- coding: utf-8 -*-
import io
import os
import re


from setuptools import find_packages, setup


def _read(*parts, **kwargs):
    filepath = os.path.join(os.path.dirname(__file__), *parts)
    encoding = kwargs.pop("encoding", "utf-8")
    with io.open(filepath, encoding=encoding) as fh:
        text = fh.read()
    return text


def get_version():
    version = re.search(
        r'^__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
        _read("bamdemux", "__init__.py"),
        re.MULTILINE,
    ).group(1)
    return version


def get_requirements(path):
    content = _read(path)
    return [
        req
        for req in content.split("\n")
        if req != "" and not req.startswith("#")
    ]


setup(
    name="bamdemux",
    version=get_version(),
    description="Split a SAM/BAM stream into one BAM file per partition key",
    long_description=_read("README.md"),
    long_description_content_type="text/markdown",
    license="MIT",
    python_requires=">=3.8",
    install_requires=get_requirements("requirements.txt"),
    extras_require={"test": ["pytest"]},
    zip_safe=False,
    entry_points={
        "console_scripts": [
            "bamdemux = bamdemux.cli:cli",
        ]
    },
    packages=find_packages(exclude=["tests", "tests.*"]),
)

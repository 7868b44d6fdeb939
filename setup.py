#  -*- coding: utf-8 -*-
"""
Setuptools script for the uPnPBrowser project.
"""

import os
from textwrap import fill, dedent

from setuptools import setup, find_packages


def required(fname):
    return [
        line.strip() for line in open(
            os.path.join(
                os.path.dirname(__file__), fname
            )
        ).read().split('\n') if line.strip()
    ]


setup(
    name="uPnPBrowser",
    version="0.1.0",
    packages=find_packages(
        exclude=[
            "*.tests",
            "*.tests.*",
            "tests.*",
            "tests",
            "*.examples",
            "*.examples.*",
            "examples.*",
            "examples"
        ]
    ),
    scripts=[],
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=required('requirements.txt'),
    extras_require={
        "test": [
            "pytest",
            "mock",
        ],
    },
    zip_safe=False,
    description=fill(dedent("""\
        Discover UPnP/DLNA media servers and browse their content directories.
    """)),
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Topic :: Communications",
        "Topic :: Multimedia",
        "Topic :: System :: Networking"
    ],
    license="MIT",
    keywords="upnp dlna ssdp media-server"
)

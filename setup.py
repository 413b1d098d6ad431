#!/usr/bin/env python
from setuptools import setup, find_packages

setup(
    name="temperature_chamber",
    version="0.0.1",
    author="Osmo Systems",
    author_email="dev@osmobot.com",
    description="Serial control of an environmental temperature chamber over Modbus RTU",
    url="https://www.github.com/osmosystems/temperature-chamber.git",
    packages=find_packages(),
    entry_points={
        "console_scripts": ["run_chamber = temperature_chamber.run:run"]
    },
    # fmt: off
    install_requires=[
        "backoff",
        "pandas",
        "pyserial"
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock"
        ]
    },
    # fmt: on
    include_package_data=True,
)

# -*- coding: utf-8 -*-

import os
import re

from setuptools import find_packages, setup

extras_require = {
    "test": [
        "pytest>=6.2.5",
        "pytest-cov>=2.10",
        "pytest-instafail>=0.4",
        "pytest-xdist>=2.5",
        "hypothesis>=6.0",
    ],
    "lint": [
        "black==23.12.0",
        "flake8==6.1.0",
        "flake8-bugbear==23.12.2",
        "flake8-use-fstring==1.4",
        "isort==5.13.2",
        "mypy==1.5",
    ],
    "dev": ["ipython", "pre-commit", "twine"],
}

extras_require["dev"] = extras_require["test"] + extras_require["lint"] + extras_require["dev"]

with open("README.md", "r") as f:
    long_description = f.read()


def _version():
    path = os.path.join(os.path.dirname(__file__), "pvmkit", "version.py")
    with open(path) as f:
        return re.search(r'^version = "(.+)"$', f.read(), re.M).group(1)


setup(
    name="pvmkit",
    version=_version(),
    description="pvmkit: generate entry points, dispatch and proxies for PVM contracts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="pvmkit developers",
    author_email="",
    license="Apache License 2.0",
    keywords="polkadot pvm smart contract code generation",
    include_package_data=True,
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.10,<4",
    install_requires=[
        "cbor2>=5.4.6,<6",
        "asttokens>=2.0.5",
        "pycryptodome>=3.5.1,<4",
        "packaging>=23.1",
    ],
    tests_require=extras_require["test"],
    extras_require=extras_require,
    entry_points={"console_scripts": ["pvmkit=pvmkit.cli.pvm_compile:_parse_cli_args"]},
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)

#!/usr/bin/env python
from setuptools import (
    find_packages,
    setup,
)

description = "delegated-routing: a client for the delegated content routing HTTP API"

extras_require = {
    "dev": [
        "build>=0.9.0",
        "mypy==1.10.0",
        "pre-commit>=3.4.0",
        "tox>=4.0.0",
        "twine",
        "wheel",
    ],
    "test": [
        "factory-boy>=2.12.0,<4.0.0",
        "pytest>=7.0.0",
        "pytest-trio>=0.5.2",
        "pytest-xdist>=2.4.0",
    ],
}

extras_require["dev"] = extras_require["dev"] + extras_require["test"]

try:
    with open("./README.md", encoding="utf-8") as readme:
        long_description = readme.read()
except FileNotFoundError:
    long_description = description

install_requires = [
    "base58>=1.0.3",
    "httpx>=0.24.0",
    "multiaddr>=0.0.9",
    "prometheus-client>=0.17.0",
    "protobuf>=6.30.1",
    "py-multibase>=1.0.3",
    "pymultihash>=0.8.2",
    "pynacl>=1.3.0",
    "trio>=0.26.0",
    "varint>=1.0.2",
]

setup(
    name="delegated-routing",
    version="0.1.0",
    description=description,
    long_description=long_description,
    long_description_content_type="text/markdown",
    include_package_data=True,
    install_requires=install_requires,
    python_requires=">=3.10, <4",
    extras_require=extras_require,
    license="MIT AND Apache-2.0",
    zip_safe=False,
    keywords="ipfs libp2p routing delegated-routing",
    packages=find_packages(exclude=["scripts", "scripts.*", "tests", "tests.*"]),
    package_data={"delegated_routing": ["py.typed", "crypto/pb/*.proto", "crypto/pb/*.pyi"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    platforms=["unix", "linux", "osx", "win32"],
)

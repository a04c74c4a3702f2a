import re

from setuptools import setup

with open("README.rst") as readme:
    long_description = readme.read()

# read the version without importing the package and its dependencies
with open("bitcoinpsbt/__init__.py") as init:
    __version__ = re.search(r'^__version__ = "([^"]+)"', init.read(), re.M).group(1)

setup(
    name="bitcoin-psbt",
    version=__version__,
    description="Partially Signed Bitcoin Transactions (BIP-174, BIP-370, BIP-371)",
    long_description=long_description,
    author="The python-bitcoin-psbt developers",
    license="MIT",
    keywords="bitcoin psbt bip174 bip370 bip371 taproot",
    install_requires=[
        "base58check>=1.0.2,<2.0",
        "coincurve>=18.0.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    packages=["bitcoinpsbt"],
    python_requires=">=3.9",
    zip_safe=False,
)

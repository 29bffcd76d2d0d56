#!/usr/bin/python3

from setuptools import setup
from version import version


setup(
    name = 'kitelog',
    version = version,
    description = 'Decoder for self-describing binary flight logs',
    packages = ['kitelog'],
    python_requires = '>=3.10',
    install_requires = [
        'dacite',
        'numpy',
        'sly',
    ],
    extras_require = {
        'test': ['pytest'],
    },
    include_package_data=False,
)

#!/usr/bin/env python
# -*- coding: utf-8 -*-
import os

from setuptools import setup

ROOT = os.path.dirname(os.path.abspath(__file__))

# There are problems running setup.py on Windows if the encoding is not set
with open(os.path.join(ROOT, 'README.md'), encoding='utf8') as readme_file:
    readme = readme_file.read()
with open(os.path.join(ROOT, 'earnalliance', 'VERSION'), encoding='utf8') as version_file:
    version = version_file.read().strip()


setup(
    name='earnalliance',
    version=version,
    description="Event tracking client for the Earn Alliance game analytics API.",
    long_description=readme,
    long_description_content_type="text/markdown",
    author="Earn Alliance",
    url='https://github.com/earnalliance/earnalliance-python',
    packages=[
        'earnalliance',
    ],
    package_dir={'earnalliance': 'earnalliance'},
    package_data={'earnalliance': ['VERSION']},
    include_package_data=True,
    install_requires=[
        'httpx>=0.24',
        'tenacity>=8.2',
        'pydantic>=2.0,<3',
    ],
    extras_require={
        'test': [
            'pytest>=7',
        ],
    },
    python_requires=">=3.8",
    license="MIT license",
    zip_safe=False,
    keywords='earnalliance analytics events',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)

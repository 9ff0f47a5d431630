# SPDX-License-Identifier: Apache-2.0
#
#!/usr/bin/env python
import io
import os
from setuptools import setup, find_packages

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))

version_ns = {}
with open(os.path.join(ROOT_DIR, 'hfq', 'version.py')) as f:
    exec(f.read(), version_ns)
VERSION = version_ns['VERSION']

with open(os.path.join(ROOT_DIR, 'requirements.txt')) as reqs_txt:
    requirements = [line.strip() for line in reqs_txt if line.strip()]

with open(os.path.join(ROOT_DIR, 'requirements-test.txt')) as test_reqs_txt:
    test_requirements = [line.strip() for line in test_reqs_txt
                         if line.strip()]

setup(
    name='fabric-query-py',
    version=VERSION,
    keywords=('Hyperledger Fabric', 'ledger', 'query'),
    license='Apache License v2.0',
    description="Read-side query and block crawling client for"
                " Hyperledger Fabric.",
    long_description=io.open(os.path.join(ROOT_DIR, 'README.md'),
                             encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    author='Hyperledger Community',
    packages=find_packages(exclude=('test', 'test.*')),
    platforms='any',
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require={'test': test_requirements},
    zip_safe=False,
    classifiers=[
            'Development Status :: 3 - Alpha',
            'Environment :: Other Environment',
            'Intended Audience :: Developers',
            'Operating System :: OS Independent',
            'Programming Language :: Python',
            'Programming Language :: Python :: 3',
            'Topic :: Utilities',
            'License :: OSI Approved :: Apache Software License',
    ],
    include_package_data=True,
)

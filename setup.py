# -*- coding: utf-8 -*-
from setuptools import setup, find_packages
import sys
if sys.version_info < (3, 11):
    sys.exit('Sorry, Python < 3.11 is not supported.')

with open('./requirements.txt') as f:
    INSTALL_REQUIRES = f.read().splitlines()

with open('./requirements-dev.txt') as f:
    TESTS_REQUIRE = f.read().splitlines()

setup(
    name="release-tools",
    version="0.1.0",
    description="Release tool for build and release scripts",
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    license="BSD",
    packages=find_packages(exclude=["tests", "tests.*"]),
    entry_points={'console_scripts': [
        'release = releaselib.__main__:main',
    ]},
    install_requires=INSTALL_REQUIRES,
    extras_require={'tests': TESTS_REQUIRE},
    python_requires='>=3.11',
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Environment :: Console",
        "Operating System :: POSIX",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Natural Language :: English",
    ]
)

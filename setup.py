#!/usr/bin/env python

from setuptools import setup


# Modified from http://stackoverflow.com/questions/2058802/
# how-can-i-get-the-version-defined-in-setup-py-setuptools-in-my-package
def version():
    import os
    import re

    init = os.path.join("taxstats", "__init__.py")
    with open(init) as fp:
        initData = fp.read()
    match = re.search(r"^__version__ = ['\"]([^'\"]+)['\"]", initData, re.M)
    if match:
        return match.group(1)
    else:
        raise RuntimeError("Unable to find version string in %r." % init)


scripts = [
    "bin/get-taxon-assembly-stats.py",
]

setup(
    name="taxon-stats",
    version=version(),
    packages=["taxstats"],
    author="Fong Chun Chan",
    author_email="fongchunchan@gmail.com",
    keywords=["genome assembly", "NCBI datasets", "taxonomy"],
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    license="MIT",
    description=(
        "Get reference assembly lengths and protein-coding gene counts "
        "for taxa from NCBI datasets"
    ),
    scripts=scripts,
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.18.4",
    ],
    extras_require={
        "test": ["pytest", "nox"],
    },
)

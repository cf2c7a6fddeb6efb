#!/usr/bin/python
# -*- encoding: utf-8 -*-
import ast
import re

from setuptools import find_namespace_packages
from setuptools import setup

## Keep the version number in one place only, the package itself.
_version_re = re.compile(r"__version__\s+=\s+(.*)")
with open("caldav_ics_sync/__init__.py", "rb") as f:
    version = str(
        ast.literal_eval(_version_re.search(f.read().decode("utf-8")).group(1))
    )

if __name__ == "__main__":
    test_packages = [
        "pytest",
        "pytest-asyncio",
        "pytest-coverage",
        "coverage",
        "icalendar",
    ]

    setup(
        name="caldav-ics-sync",
        version=version,
        description="Bidirectional sync between CalDAV servers and ICS feeds",
        long_description=open("README.md").read(),
        long_description_content_type="text/markdown",
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: System Administrators",
            "License :: OSI Approved :: Apache Software License",
            "Operating System :: OS Independent",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
            "Framework :: AsyncIO",
            "Topic :: Office/Business :: Scheduling",
        ],
        keywords="caldav ics icalendar sync",
        license="Apache-2.0",
        ## lib/ and elements/ have no __init__.py
        packages=find_namespace_packages(include=["caldav_ics_sync", "caldav_ics_sync.*"]),
        include_package_data=True,
        zip_safe=False,
        python_requires=">=3.10",
        install_requires=[
            "lxml",
            "aiohttp",
            "PyYAML",
            "tenacity",
        ],
        extras_require={
            "test": test_packages,
        },
    )

#!/usr/bin/env python3
"""Setup script for Journeymap."""

from setuptools import setup, find_packages

setup(
    name="journeymap",
    version="1.0.0",
    description="Branching journey timelines with photo memories and an animated path marker",
    author="Journeymap Project",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "PyGObject>=3.46.0",
        "pycairo>=1.25.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "journeymap=journeymap.launcher:main",
            "journeymap-migrate=journeymap.migrate:main",
        ],
        "gui_scripts": [
            "journeymap-gui=journeymap.launcher:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: X11 Applications :: GTK",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Topic :: Multimedia :: Graphics",
    ],
)

"""Packaging for threadkeeper (src layout, console script `threadkeeper`)."""

from setuptools import find_packages, setup

setup(
    name="threadkeeper",
    version="0.1.0",
    description="Append-only verbatim note store served over MCP stdio",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "click>=8.1",
        "rich>=13.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "threadkeeper = threadkeeper.cli:main",
        ],
    },
)

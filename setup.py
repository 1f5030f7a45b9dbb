"""Setup script for SchemaScout."""

from setuptools import setup, find_packages

setup(
    name="schemascout",
    version="0.1.0",
    description="Incremental schema discovery for SPARQL endpoints, rendered as a VOWL graph model",
    author="SchemaScout Team",
    python_requires=">=3.10",
    package_dir={"": "src", "config": "config"},
    packages=find_packages(where="src") + ["config"],
    install_requires=[
        "pydantic>=2.6.0",
        "pydantic-settings>=2.1.0",
        "click>=8.1.0",
        "rich>=13.7.0",
        "python-dotenv>=1.0.0",
        "httpx>=0.26.0",
        "structlog>=24.1.0",
        "rdflib>=7.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "schemascout=schemascout.cli.commands:cli",
        ],
    },
)

"""
Setup.py for vulnview.
"""
from setuptools import setup, find_packages

setup(
    name="vulnview",
    version="0.1.0",
    description="Interactive viewer for vulnerability scan findings",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "rich>=13.0",
        "textual>=0.80",
        "typer>=0.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "vulnview=vulnview.cli:app",
        ],
    },
    zip_safe=False,
)

#!/usr/bin/env python3
"""
Setup script for DepMatrix

Install with:
    pip install -e .

Or with test tooling:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# Service dependencies
service_requirements = [
    "fastapi>=0.110.0",
    "uvicorn>=0.27.0",
    "pydantic[email]>=2.5.0",
    "pydantic-settings>=2.1.0",
    "httpx>=0.26.0",
    "python-jose[cryptography]>=3.3.0",
    "python-dotenv>=1.0.0",
]

# CLI dependencies
cli_requirements = [
    "httpx>=0.26.0",
    "rich>=13.7.0",
]

setup(
    name="depmatrix",
    version="1.0.0",
    description="DepMatrix - triangular dependency matrix management service",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="DepMatrix Team",
    license="MIT",
    packages=find_packages(include=["depmatrix", "depmatrix.*", "depmatrix_cli", "depmatrix_cli.*"]),
    python_requires=">=3.9",
    install_requires=service_requirements + cli_requirements,
    extras_require={
        "cli": cli_requirements,
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "faker>=22.0.0",
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "depmatrix=depmatrix_cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business",
    ],
    keywords="dependency-matrix fastapi admin history",
)

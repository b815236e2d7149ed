#!/usr/bin/env python3
"""Setup script for mloptimizer package."""

import os

from setuptools import find_packages, setup

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

# Core dependencies (production)
install_requires = [
    "fastapi>=0.110.0",
    "starlette>=0.36.0",
    "pydantic>=2.0.0",
    "uvicorn>=0.27.0",
    "numpy>=1.24.0",
    "psutil>=5.9.0",
    "PyYAML>=6.0",
    "prometheus-client>=0.19.0",
    "structlog>=23.2.0",
]

# Test dependencies
test_requires = [
    "pytest>=7.4.0",
    "pytest-asyncio>=0.21.0",
    "hypothesis>=6.90.0",
    "httpx>=0.25.0",
]

# Development dependencies
dev_requires = [
    "black==24.1.1",
    "flake8==7.0.0",
    "mypy==1.8.0",
    "isort==5.13.2",
    "types-PyYAML==6.0.12.12",
    "pre-commit==3.6.0",
    "pylint==3.3.7",
]

setup(
    name="mloptimizer",
    version="1.0.0",
    author="Data Science Team",
    author_email="",
    description="Adaptive, self-learning performance optimizer for web request pipelines",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["app"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.11",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.11",
    install_requires=install_requires,
    extras_require={
        "test": test_requires,
        "dev": dev_requires + test_requires,
    },
    include_package_data=True,
    package_data={
        "mloptimizer": ["*.yaml", "*.yml", "*.json"],
    },
    entry_points={
        "console_scripts": [
            "mloptimizer-demo=app:main",
        ],
    },
    zip_safe=False,
)

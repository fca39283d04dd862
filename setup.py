"""
Navvra - Setup Configuration

Page analysis and synchronisation toolkit: extracts the elements that matter
on a live document, classifies and ranks them, summarises the page and keeps
overlay/toolbar surfaces in sync through a sanitized message protocol.

License: Apache-2.0
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Core dependencies
core_deps = [
    # Framework core
    "pydantic>=2.11.9",
    "aiohttp>=3.12.15",
    # Documents
    "playwright>=1.55.0",
    "beautifulsoup4>=4.14.2",
    "lxml>=6.0.2",  # Parser backend for BeautifulSoup
    # CLI/Terminal
    "click>=8.1.7",
    "rich>=14.1.0",
]

# Development dependencies
dev_deps = [
    # Testing
    "pytest>=8.4.1",
    "pytest-asyncio>=1.0.0",
    "pytest-mock>=3.14.1",
    "pytest-cov>=6.2.1",
    # Code quality
    "black>=25.0.0",
    "flake8>=7.1.0",
    "mypy>=1.13.0",
]

setup(
    name="navvra",
    version="0.1.0",

    # Package description
    description="Extract, classify and summarise the elements that matter on a web page, with sanitized overlay/toolbar synchronisation",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package discovery
    packages=find_packages(where="src"),
    package_dir={"": "src"},

    # Python version requirement
    python_requires=">=3.10",

    # Dependencies
    install_requires=core_deps,

    extras_require={
        "core": core_deps,
        "test": dev_deps[:4],
        "dev": core_deps + dev_deps,
    },

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Internet :: WWW/HTTP :: Browsers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Framework :: AsyncIO",
    ],

    keywords=[
        "accessibility", "dom", "page-analysis", "summarization",
        "playwright", "beautifulsoup", "overlay",
    ],

    license="Apache-2.0",

    include_package_data=True,
    zip_safe=False,

    entry_points={
        "console_scripts": [
            "navvra=navvra.cli:main",
        ],
    },
)

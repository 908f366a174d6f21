"""
Setup script for the Tab_Ops package.
"""

from setuptools import setup, find_packages

setup(
    name="tab_ops",
    version="0.1.0",
    description="Tab enrichment pipeline and hybrid (vector + BM25) tab search",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["tab_ops_exceptions", "client"],
    install_requires=[
        "pymilvus>=2.3.0",
        "numpy>=1.20.0",
        "pydantic>=2.0.0,<3.0.0",
        "pydantic-settings>=2.0.0",
        "pydantic-yaml>=1.1.0",
        "pyyaml>=6.0",
        "tenacity>=8.0.0,<9.2",  # For retry logic; 9.2+ no longer awaits coroutines returned by plain callables
        "google-generativeai>=0.5.0",
        "python-dotenv>=1.0.0",
        "httpx>=0.24.0",
        "trafilatura>=1.6.0",
        "lxml_html_clean",  # lxml>=5.2 split out lxml.html.clean, needed by trafilatura (via justext)
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "mypy>=1.0.0",
            "flake8>=6.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
)

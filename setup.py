"""
Setup script for trueredact
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="trueredact",
    version="1.0.0",
    author="trueredact",
    description="Permanently remove content from regions of PDF documents",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(),
    install_requires=[
        "PyMuPDF>=1.23.0",
        "pikepdf>=8.0.0",
        "Pillow>=10.1.0",
        "click>=8.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.1.0",
        "fastapi>=0.100.0",
        "python-multipart>=0.0.6",
        "uvicorn>=0.23.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "httpx>=0.24.0",
            "black>=23.0.0",
            "flake8>=6.0.0"
        ]
    },
    entry_points={
        "console_scripts": [
            "trueredact=trueredact.cli:cli",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Legal Industry",
        "Intended Audience :: Information Technology",
        "Topic :: Security",
        "Topic :: Office/Business",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="pdf redaction rasterize security privacy document audit",
)

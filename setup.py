#!/usr/bin/env python3
"""
Setup configuration for the Vaccine QR Tracker
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="vaccine-qr-tracker",
    version="1.0.0",
    author="Vaccine QR Tracker Team",
    author_email="",
    description="GS1 QR code generation and scan tracking for vaccine doses",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "docs", "scripts"]),
    python_requires=">=3.9",
    install_requires=[
        "python-dateutil>=2.8",
        "pymongo>=4.0",
        "pandas>=1.5",
        "openpyxl>=3.0",
        "reportlab>=3.6",
        "streamlit>=1.37",
        "qrcode[pil]>=7.4",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gs1-qr=gs1_qr.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    keywords="gs1 qr-code vaccine gtin healthcare tracking",
)

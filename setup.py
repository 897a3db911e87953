#!/usr/bin/env python3
"""
Rover Mission - Setup Script
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="rover-mission",
    version="0.1.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Mission states for driving a rover through remote navigation actions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/rover-mission",
    project_urls={
        "Bug Tracker": "https://github.com/yourusername/rover-mission/issues",
        "Documentation": "https://github.com/yourusername/rover-mission#readme",
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering",
        "Topic :: Software Development :: Embedded Systems",
    ],
    packages=find_packages(where=".", include=["rover_mission*", "simulation*"]),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "mypy>=1.0.0",
        ],
    },
    include_package_data=True,
    package_data={
        "": ["config/*.yaml"],
    },
)

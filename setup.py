"""
Setup script for learnsync.

learnsync keeps a coding-course IDE session in step with the backend:

1. Identity - Route token to learner identity, guest on any failure
2. Progress - One progress record per (student, course), resolved before create
3. Saves - Local mirror first, remote sync on top
4. Time - Local study clock with periodic flushes

The 'learnsync' command exposes operator tools over the same library.
"""

from setuptools import find_packages, setup

setup(
    name="learnsync",
    version="1.0.0",
    description="Learning-session synchronizer for a coding-course IDE",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="BeBlocky",
    packages=find_packages(include=["learnsync", "learnsync.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "learnsync=learnsync.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="learning progress sync ide education",
)

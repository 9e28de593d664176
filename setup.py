"""
Setup script for tactics-coach.

Tactics Coach is the adaptive recommendation engine behind the puzzle
trainer. It serves three roles:

1. Skill tracking - Per-user, per-puzzle and per-theme rating records
2. Review scheduling - Two-box Leitner spaced repetition
3. Batch generation - Similarity-driven next batches with a shared cache

The 'tactics-coach' command is the primary entry point.
"""

from setuptools import find_packages, setup

setup(
    name="tactics-coach",
    version="1.0.0",
    description="Adaptive puzzle recommendation engine with Leitner review scheduling",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Tactics Coach",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy[asyncio]>=2.0.0",
        "aiosqlite>=0.19.0",
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
        "postgres": [
            "asyncpg>=0.28.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tactics-coach=tactics_coach.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Games/Entertainment :: Board Games",
    ],
    keywords="chess puzzles spaced-repetition leitner rating recommendation",
)

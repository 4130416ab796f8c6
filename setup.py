"""
Setup script for fluency-engine.

fluency is an adaptive practice scheduler for fact-drilling quizzes
(fretboard notes, intervals, chord spellings...). It decides:

1. Which item to drill next - weighted by staleness and slowness
2. How automatic each item is - recall probability x speed
3. Which group to focus on - consolidate before expanding

The 'fluency' command exposes simulation, calibration and progress views.
"""

from setuptools import find_packages, setup

setup(
    name="fluency-engine",
    version="1.0.0",
    description="Adaptive practice scheduling engine for fact-drilling quizzes",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Fluency",
    packages=find_packages(include=["fluency", "fluency.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fluency=fluency.cli.main:run",
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
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition automaticity adaptive practice cli",
)

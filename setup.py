"""
Setup script for quizdoc.

quizdoc turns human-authored quiz documents (.docx files or plain text)
into structured questions ready for storage:

1. Run Stream Normalizer - paragraphs and runs to logical lines
2. Segmenter and Classifier - one typed block per question
3. Parsers, Answer Key Resolver and Sanitizer - storage-ready questions

The 'quizdoc' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="quizdoc",
    version="1.0.0",
    description="Structured quiz extraction from word-processor documents and plain text",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["quizdoc", "quizdoc.*"]),
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
        # Documents
        "python-docx>=1.0.0",
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
            "quizdoc=quizdoc.cli:run",
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
        "Topic :: Text Processing",
    ],
    keywords="quiz docx parser import education",
)

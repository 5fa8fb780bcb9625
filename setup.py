"""Setup script for md-snapshot"""
from setuptools import setup
from pathlib import Path
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""
setup(
    name="md-snapshot",
    version="1.0.0",
    author="MD Snapshot Project",
    description="Combine source files into a single fenced Markdown snapshot",
    long_description=long_description,
    long_description_content_type="text/markdown",
    py_modules=["md_snapshot"],
    python_requires=">=3.8",
    install_requires=["rich>=12.0.0"],
    extras_require={
        "dev": ["pytest>=6.0.0", "black>=22.0.0", "flake8>=4.0.0"],
    },
    entry_points={
        "console_scripts": [
            "md-snapshot=md_snapshot:cli_main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Tools",
        "Topic :: Text Processing :: Markup :: Markdown",
    ],
)

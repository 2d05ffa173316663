from pathlib import Path
from setuptools import setup, find_packages


def read_readme() -> str:
    readme_path = Path(__file__).resolve().parent / "README.md"
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""


setup(
    name="dms4096",
    version="1.0.0",
    packages=find_packages(include=["dms4096", "dms4096.*"]),
    install_requires=[
        "cryptography>=41.0.0",
        "numpy>=1.24.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["dms4096=dms4096.cli:main"],
    },
    python_requires=">=3.10",
    description="Password-based AES-256-CBC containers for text and files",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
)

from pathlib import Path
from setuptools import setup, find_packages

PROJECT_ROOT = Path(__file__).parent.resolve()
README = PROJECT_ROOT / "DESIGN.md"

setup(
    name="convex-envsync",
    version="0.1.0",
    description=(
        "Idempotent environment-variable and JWT key sync for self-hosted "
        "and cloud Convex deployments."
    ),
    long_description=README.read_text(encoding="utf-8") if README.exists() else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "cli-core-yo<1.2.2",
        "cryptography>=41",
        "pydantic>=2",
        "PyYAML>=6",
        "rich>=13",
        "typer>=0.9",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "convex-envsync=convex_envsync.cli:main",
        ],
    },
)

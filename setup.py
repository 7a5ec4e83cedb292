from setuptools import setup, find_packages

setup(
    name="lspfold",
    version="0.1.0",
    description="Folding-range request schema and capability helpers for LSP",
    packages=find_packages(include=["lspfold", "lspfold.*"]),
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0",
        "pydantic>=2.0",
        "tomli>=2.0",
        "tomli-w>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "lspfold=lspfold.cli:cli",
        ],
    },
)

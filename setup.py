# setup.py
from setuptools import setup, find_packages

setup(
    name="pocket-ledger",
    version="0.1.0",
    description="Recurring-payment detection and a learning categorizer for personal ledgers",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/pocket-ledger",
    packages=find_packages(include=["pocket_ledger", "pocket_ledger.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "pandas>=1.1",
        "numpy>=1.19",
        "python-dotenv>=0.15",
    ],
    extras_require={
        "test": ["pytest>=6.0"],
    },
    entry_points={
        "console_scripts": [
            "pocket-ledger=pocket_ledger.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)

from setuptools import setup, find_packages

setup(
    name="issue-attention",
    version="1.0.0",
    description="Status reconciliation and attention flags for mirrored GitHub work items",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "rich>=13.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "issue-attention=issue_attention.cli:main",
        ],
    },
)

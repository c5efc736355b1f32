from setuptools import setup, find_packages

setup(
    name="gymlog",
    version="0.1.0",
    description="GymLog - local event-sourced workout log engine",
    author="Your Name",
    packages=find_packages(include=["gymlog", "gymlog.*"]),
    include_package_data=True,
    install_requires=[
        # Core data modeling and validation
        "pydantic>=2.0.0",

        # Environment variables
        "python-dotenv>=1.0.0",

        # CLI and rich output
        "typer>=0.9.0",
        "rich>=13.0.0",

        # Backup files (Parquet via DuckDB)
        "duckdb>=1.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gymlog = gymlog.app.cli:main",
        ],
    },
    python_requires=">=3.11",
    package_dir={"": "."},
)

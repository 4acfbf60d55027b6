"""Setup configuration for the PLDG engagement data layer."""

from setuptools import find_packages, setup

setup(
    name="pldg-dashboard",
    version="0.3.0",
    description="PLDG dashboard data layer — resilient multi-source cohort engagement retrieval",
    author="PLDG",
    python_requires=">=3.11",
    packages=find_packages(where="src", include=["pldg*"]),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.27.0",
        "pandas>=2.2.0",
        "pydantic>=2.6.0",
        "pydantic-settings>=2.1.0",
    ],
    entry_points={
        "console_scripts": [
            "pldg=pldg.cli:cli_entry",
        ],
    },
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-mock>=3.12.0",
            "respx>=0.21.0",
            "python-dotenv>=1.0.0",
        ],
    },
)

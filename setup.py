import os
from setuptools import setup, find_packages

def parse_requirements(requirements):
    with open(requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements(os.path.join(os.path.dirname(os.path.abspath(__file__)), "requirements.txt"))

setup(
    name='catalog_backend',
    version='0.1.0',
    install_requires=requirements,
    package_dir={"": "src"},
    packages=find_packages("src", include=["catalog_backend", "catalog_backend.*"]),
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "catalog=catalog_backend.cli.cli:cli",
        ],
    }
)

"""Setup script for terrakube-provider."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="terrakube-provider",
    version="0.1.0",
    author="Terrakube Provider Contributors",
    description="Team, module and collection resources for the Terrakube API",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["terrakube_provider", "terrakube_provider.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=[
        "click>=8.1.0",
        "cryptography>=41.0.0",
        "requests>=2.31.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "terrakube=terrakube_provider.cli:main",
        ],
    },
)

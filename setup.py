"""
Setup configuration for the autorest package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="autorest",
    version="0.1.0",
    author="autorest Contributors",
    description="REST interfaces generated from model descriptors, with JSON, XML and YAML representations",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["autorest", "autorest.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov",
            "ruff",
            "mypy",
            "types-PyYAML",
        ],
        "examples": ["uvicorn"],
    },
)

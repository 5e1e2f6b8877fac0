"""
Setup script for the Pengines client
"""

from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", encoding="utf-8") as fh:
    requirements = [
        line.strip() for line in fh if line.strip() and not line.startswith("#")
    ]

setup(
    name="pengines",
    version="0.1.0",
    description="A client for running Prolog queries on remote pengine servers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["pengines", "pengines.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Prolog",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={"test": ["pytest>=7"]},
)

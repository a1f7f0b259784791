from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="ustripe",
    version="0.1.0",
    description="Manage Stripe customers and subscriptions from the command line",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Operating System :: POSIX",
    ],
    python_requires=">=3.11",
    install_requires=[
        "stripe>=8.0.0",
        "click>=8.1.7",
        "rich>=13.7.0",
        "structlog>=23.2.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "passlib>=1.7.4",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ustripe=ustripe.cli:main",
        ],
    },
)

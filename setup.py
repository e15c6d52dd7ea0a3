from setuptools import setup, find_packages

setup(
    name="tzkt-cache",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp",
        "pydantic>=2",
        "pydantic-settings",
        "structlog",
        "redis",
        "prometheus-client"
    ],
    extras_require={
        "test": [
            "pytest"
        ],
    },
    python_requires=">=3.8"
)

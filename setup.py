"""Setup file for development installation."""

from setuptools import setup, find_packages

setup(
    name="lawyer-messaging",
    version="0.1.0",
    description="Messaging and realtime notification backend for the lawyer services app",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.100",
        "pydantic>=2.4",
        "pydantic-settings>=2.0",
        "structlog>=23.1",
        "prometheus-client>=0.17",
        "opentelemetry-instrumentation-fastapi>=0.40b0",
        "python-socketio>=5.10",
        "PyJWT>=2.8",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
            "httpx>=0.24",
        ],
    },
)

from setuptools import find_packages, setup

setup(
    name="battery-rental",
    version="1.0.0",
    description="CRUD backend for a battery rental business",
    packages=find_packages(include=["battery_rental", "battery_rental.*"]),
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "loguru>=0.7.0",
        "prometheus-client>=0.19.0",
        "prometheus-fastapi-instrumentator>=6.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "battery-rental=battery_rental.main:main",
        ],
    },
)

from setuptools import setup, find_packages

setup(
    name="sahha-insights",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "psycopg2-binary",
        "python-dotenv",
        "pydantic",
        "pydantic-settings",
        "httpx",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)

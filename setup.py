#!/usr/bin/env python

from setuptools import setup

setup(
    name="pobbin",
    version="1.0.0",
    description="Paste server for Path of Building exports",
    packages=["pobbin", "pobbin.api", "pobbin.storage"],
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.10",
    keywords=["API", "pastebin", "Path of Building"],
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    install_requires=[
        "fastapi",
        "starlette",
        "uvicorn",
        "httpx",
        "anyio",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "class-doc",
        "aiobotocore",
        "botocore",
        "types-aiobotocore[s3]",
        "async-lru",
    ],
    extras_require={
        'dev': [
            'pytest',
            'pytest-httpx',
            'mypy',
            'flake8',
        ]
    },
    entry_points={
        'console_scripts': [
            'pobbin = pobbin.__main__:main'
        ]
    },
)

from pathlib import Path
from setuptools import setup, find_packages

ROOT = Path(__file__).parent
README = (ROOT / "README.md").read_text(encoding="utf-8")

setup(
    name="firestore_submodel_odm",
    version="0.1.0",
    description="Schema-driven async collections and subcollections for Google Cloud Firestore",
    long_description=README,
    long_description_content_type="text/markdown",
    author="Santos Dev Co",
    author_email="projects@santosdevco.com",
    url="https://github.com/santosdevco/firestore-submodel-odm",
    license="MIT",
    packages=find_packages(exclude=("tests", "tests.*", "examples")),
    include_package_data=True,           # include py.typed
    package_data={"firestore_submodel_odm": ["py.typed"]},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=1.10,<3.0.0",
        "google-cloud-firestore>=2.11.0",  # FieldFilter / where(filter=...)
        "google-api-core",
        "packaging",
    ],
    extras_require={
        "emulator": ["google-cloud-firestore-emulator"],
        "test": ["pytest", "pytest-asyncio", "httpx"],
        "dev": ["black", "ruff", "pytest", "pytest-asyncio", "httpx"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Framework :: AsyncIO",
        "Topic :: Database :: Front-Ends",
        "Typing :: Typed",
    ],
    keywords=[
        "firestore",
        "subcollections",
        "pydantic",
        "odm",
        "asyncio",
        "google cloud",
    ],
)

from pathlib import Path

from setuptools import find_packages
from setuptools import setup


HERE = Path(__file__).resolve().parent


def get_long_description():
    readme = HERE / "README.md"
    if not readme.exists():
        return ""
    return readme.read_text(encoding="utf-8")


setup(
    name="cbtrace",
    version="0.1.0",
    description="Tracing for the callback and event driven Couchbase query client",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*"]),
    package_data={
        "cbtrace": ["py.typed"],
    },
    zip_safe=False,
    python_requires=">=3.9",
    install_requires=[
        "envier~=0.5",
        "wrapt>=1.14",
    ],
    extras_require={
        "test": [
            "pytest>=7",
        ],
    },
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
    ],
)

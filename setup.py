from setuptools import setup, find_packages

setup(
    name="uisync",
    version="1.0.0",
    packages=find_packages(include=["uisync", "uisync.*"]),
    install_requires=[
        "selenium>=4.10",
        "urllib3>=1.26",
        "pyyaml>=5.4",
        "jsonschema>=4.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    package_data={
        "uisync": ["schemas/*.json"],
    },
)

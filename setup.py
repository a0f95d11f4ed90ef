from setuptools import setup, find_packages

setup(
    name="credproof",
    version="0.1.0",
    description="Selectively disclosable identity credentials with paired private checks (experimental)",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"credproof.disclosure": ["test_vectors/*.json"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Security :: Cryptography",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.9",
    install_requires=[
        "trio>=0.27.0",
        "cbor2>=5.6.0",
        "pynacl>=1.5.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-trio>=0.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "credproof=credproof.cli:main",
        ],
    },
)

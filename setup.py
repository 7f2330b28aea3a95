from setuptools import setup, find_namespace_packages

setup(
    name="golog",
    version="0.1.0",
    description="Leveled logging and logged command execution with nested failure reporting",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["golog*"]),
    install_requires=[],
    extras_require={
        "test": ["pytest", "pytest-cov"],
    },
    entry_points={
        "console_scripts": [
            "golog=golog.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
)

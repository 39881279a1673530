"""
Setup Configuration for parspace
================================

Key Features:
- Core dependencies for sampling, deduplication and volume estimation
- Optional dependency groups (pip install parspace[dev])
"""

import sys
from pathlib import Path

from setuptools import find_packages, setup

# Get the directory containing setup.py
HERE = Path(__file__).parent.resolve()


# Read the long description from README
def read_readme():
    """Read README file for long description."""
    readme_path = HERE / "README.md"
    if readme_path.exists():
        return readme_path.read_text(encoding="utf-8")
    return "Parameter space partitioning with adaptive random-walk chains"


# Read version from parspace/__init__.py
def read_version():
    """Read version from package __init__.py."""
    init_path = HERE / "parspace" / "__init__.py"
    if init_path.exists():
        with open(init_path, "r") as f:
            for line in f:
                if line.startswith("__version__"):
                    return line.split("=")[1].strip().strip("\"'")
    return "0.3.0"


# Define dependency groups
INSTALL_REQUIRES = [
    "numpy>=1.21.0",
    "scipy>=1.7.0",
    "pyyaml>=5.4.0",
    "pandas>=1.3.0",
    "tqdm>=4.60.0",
]

EXTRAS_REQUIRE = {
    # Development and test dependencies
    "dev": [
        "pytest>=6.2.0",
        "pytest-cov>=2.12.0",
        "hypothesis>=6.0.0",
        "black>=21.0.0",
        "ruff>=0.0.290",
    ],
    "test": [
        "pytest>=6.2.0",
        "hypothesis>=6.0.0",
    ],
}

EXTRAS_REQUIRE["all"] = sorted(set(sum(EXTRAS_REQUIRE.values(), [])))

# Classifiers for PyPI
CLASSIFIERS = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Topic :: Scientific/Engineering :: Mathematics",
    "License :: OSI Approved :: MIT License",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.9",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Operating System :: OS Independent",
]

# Keywords for PyPI search
KEYWORDS = [
    "parameter space partitioning", "model comparison", "random walk",
    "mcmc", "hyperellipsoid", "qualitative patterns", "scientific computing",
]


def check_python_version():
    """Check if Python version is supported."""
    if sys.version_info < (3, 9):
        print("Python 3.9 or higher is required")
        print(f"   Current version: {sys.version}")
        sys.exit(1)


if __name__ == "__main__":
    check_python_version()

    setup(
        # Basic package information
        name="parspace",
        version=read_version(),
        description="Parameter space partitioning with adaptive random-walk chains",
        long_description=read_readme(),
        long_description_content_type="text/markdown",

        # Author and contact information
        author="parspace Development Team",
        author_email="parspace-dev@example.com",

        # Package discovery and inclusion
        packages=find_packages(exclude=["tests*", "docs*"]),
        include_package_data=True,

        # Dependencies
        install_requires=INSTALL_REQUIRES,
        extras_require=EXTRAS_REQUIRE,
        python_requires=">=3.9",

        # Metadata for PyPI
        classifiers=CLASSIFIERS,
        keywords=KEYWORDS,
        license="MIT",

        zip_safe=False,
    )

import io

from setuptools import find_packages, setup

# Read the README.md file
with io.open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

install_requires = [
    "pydantic>=2.0.0",
    "pydantic-settings>=2.0.0",
]

extras_require = {
    "test": [
        "pytest>=8.0.0",
        "pytest-cov>=5.0.0",
        "pytest-xdist>=3.6.0",
    ],
}

setup(
    name="sway-easyshot",
    version="0.1.0",
    description="Screenshot, screen recording and OBS control daemon for Sway",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=install_requires,
    long_description=long_description,
    long_description_content_type="text/markdown",
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "sway-easyshot=easyshot.cli:main",
        ],
    },
)

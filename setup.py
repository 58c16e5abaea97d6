"""Setup configuration for the mediakeeper Discord bot."""

from setuptools import setup, find_packages

setup(
    name="mediakeeper",
    version="0.1.0",
    description="A Discord bot that keeps channels media-only by moving text into threads",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
        "requests>=2.31",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "mediakeeper=mediakeeper.main:main",
        ],
    },
)

"""Setup configuration for TriBot Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="tribot",
    version="0.2.0",
    description="A Discord bot with persistent state, dice and exclusive-choice polls",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord",
        "python-dotenv",
        "PyYAML",
        "prompt_toolkit",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "tribot=tribot.main:main",
        ],
    },
)

"""Setup configuration for Tonecord, an AI chat tone moderation bot."""

from setuptools import setup, find_packages

setup(
    name="tonecord",
    version="0.1.0",
    description="A Discord bot that rewrites toxic chat messages using AI",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"tonecord.moderation": ["data/*.yml"]},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "openai>=1.40",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "aiohttp>=3.9",
        "jsonschema>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "tonecord=tonecord.main:main",
        ],
    },
)

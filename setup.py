# setup.py
from setuptools import setup, find_packages

setup(
    name="site_auditor",
    version="0.1.0",
    description="Asynchronous crawler and SEO auditor SiteAuditor",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"site_auditor.report": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "lxml>=4.9",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "click>=8.2",
        "jinja2>=3.1",
        "playwright>=1.40",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-auditor=site_auditor.cli:cli",
        ],
    },
    python_requires=">=3.11",
)

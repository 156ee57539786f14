# setup.py
from setuptools import setup, find_packages

setup(
    name="site_pdf",
    version="0.1.0",
    description="Генерация PDF из страниц собранного сайта через headless Chromium",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"site_pdf": ["templates/*.j2"]},
    install_requires=[
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "aiohttp>=3.9",
        "aiofiles>=23.1",
        "Jinja2>=3.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-pdf=site_pdf.cli:cli",
        ],
    },
    python_requires=">=3.11",
)

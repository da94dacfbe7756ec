# setup.py
from setuptools import setup, find_packages

setup(
    name="site_capture",
    version="0.1.0",
    description="Краулер SiteCapture: обход сайта в ширину и сохранение отрендеренных страниц и ресурсов",
    packages=find_packages(exclude=["tests", "tests.*"]),  # автоматически найдёт папку site_capture
    package_data={"site_capture": ["report/templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "Jinja2>=3.1",
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-capture=site_capture.cli:cli",
        ],
    },
    python_requires=">=3.11",
)

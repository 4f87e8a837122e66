# setup.py - AI Pictionary 安装配置

from setuptools import setup, find_packages

setup(
    name="ai-pictionary",
    version="0.1.0",
    description="Two-party drawing game judged by a vision model",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pygame>=2.1.0",
        "requests>=2.28",
    ],
    extras_require={
        "dev": [
            "black==23.9.1",
            "flake8==6.1.0",
            "isort==5.12.0",
            "pytest==7.4.0",
            "pytest-cov==4.1.0",
            "pre-commit==3.4.0",
            "responses>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "draw-guess-server=ai_pictionary.server.main:main",
            "draw-guess-client=ai_pictionary.client.main:main",
        ],
    },
)

from setuptools import setup, find_packages

setup(
    name="autojoin",
    version="0.1.0",
    description="autojoin - обнаружение узлов кластера и саморегистрация через Consul",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.16.0",
        "rich>=13.7.1",
        "requests>=2.31.0",
        "PyYAML>=6.0.2",
        "python-dotenv>=1.0.1",
        "psutil>=5.9.8",
    ],
    extras_require={
        "test": [
            "pytest>=8.3.2",
        ],
    },
    entry_points={
        "console_scripts": [
            "autojoin=autojoin.apps.cli.app:app",  # команда `autojoin`
        ],
    },
)

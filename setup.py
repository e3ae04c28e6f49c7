from setuptools import setup, find_packages


setup(
    name="tarback",
    version="0.1",
    packages=find_packages(include=["tarback", "tarback.*"]),
    description="Date-filtered directory backup and restore using a simple 512-byte block archive format.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "tarback=tarback.cli:main",
            "tarback-backup=tarback.cli:backup_main",
            "tarback-restore=tarback.cli:restore_main",
            "tarback-ls=tarback.cli:ls_main",
        ]
    },
)

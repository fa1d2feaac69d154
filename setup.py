from setuptools import setup, find_packages

setup(
    name="savefile",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'savefile=savefile.cli:main',
        ],
    },
)

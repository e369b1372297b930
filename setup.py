from setuptools import setup, find_packages

major = 0

__version__ = '1.1.0'

requirements = [
    'pymongo>=3.12.3',
    'coloredlogs',
    'iso8601'
]

test_requirements = [
    'pytest'
]

setup(
    name='taxledger',
    version=__version__,
    description='Fungible token ledger with per-operation transaction tax.',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=requirements,
    extras_require={
        'test': test_requirements,
    },
    classifiers=[
        'Programming Language :: Python :: 3',
    ],
    python_requires='>=3.6',
    zip_safe=True,
    include_package_data=True,
)

from setuptools import setup, find_packages
from codecs import open
from os import path

VERSION = '0.1.0'

here = path.abspath(path.dirname(__file__))

# Get the long description from the README file
with open(path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='git-hours',
    version=VERSION,
    description='Estimate hours worked on a git repository from its commit timestamps',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='BSD',
    classifiers=[
      'Development Status :: 3 - Alpha',
      'Intended Audience :: Developers',
      'Programming Language :: Python :: 3',
    ],
    keywords='git hours time tracking commits',
    packages=find_packages(exclude=['tests*', 'examples*']),
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=[
        'gitpython>=3.1.0',
        'pandas>=1.5.0,<3'
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'git-hours=githours.cli:main',
        ],
    },
)

"""
cargo-cover - LLVM source-based coverage for cargo test suites

Installation:
    pip install -e .

This installs the 'cargo-cover' command globally in your environment,
which cargo picks up as the `cargo cover` subcommand.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='cargo-cover',
    version='1.0.0',
    description='Run cargo tests under LLVM coverage and report with grcov',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Dale Chapman',
    author_email='',
    license='MIT',

    # Find all packages (cargo_cover/ and any subpackages)
    packages=find_packages(exclude=['tests', 'tests.*', 'cargo_cover.tests', 'cargo_cover.tests.*']),

    # Python version requirement
    python_requires='>=3.9',

    # Dependencies
    install_requires=[
        'click>=8.0',
        'PyYAML>=6.0',
    ],

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'pytest-mock>=3.11',
        ],
    },

    # CLI entry point - this creates the 'cargo-cover' command
    entry_points={
        'console_scripts': [
            'cargo-cover=cargo_cover.cli:cli',
        ],
    },

    # Classifiers for PyPI
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Software Development :: Testing',
    ],

    # Keywords for discoverability
    keywords='rust cargo coverage grcov lcov llvm',
)

"""
Setup configuration for pyarduino (Firmata host library).

It can be installed via:
    - pip install .
    - pip install -e .  (for development)
    - pip install -e .[dev]  (with test tools)
"""

from setuptools import setup, find_packages

package_name = 'pyarduino'

setup(
    name=package_name,
    version='0.1.0',
    packages=find_packages(exclude=['test', 'tests']),

    install_requires=[
        'pyserial>=3.5',
    ],

    extras_require={
        'dev': [
            'pytest>=7.0',
            'pytest-cov',
            'pytest-timeout',
        ],
    },

    zip_safe=True,

    description='Python library for driving Arduino boards over the Firmata protocol',
    long_description=open('README.md').read() if __import__('os').path.exists('README.md') else '',
    long_description_content_type='text/markdown',
    license='MIT',

    entry_points={
        'console_scripts': [
            'pyarduino-info = pyarduino.cli:main',
        ],
    },

    python_requires='>=3.8',

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Topic :: System :: Hardware',
    ],
)

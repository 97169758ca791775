#!/usr/bin/env python3
"""
Setup script for chatregistry
In-process user and channel state registry for a chat server
"""

from setuptools import setup

# Read README for long description
try:
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = "chatregistry - user, channel and membership registry for chat servers"

# Read requirements
try:
    with open('requirements.txt', 'r', encoding='utf-8') as f:
        requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]
except FileNotFoundError:
    requirements = []

setup(
    name='chatregistry',
    version='1.0.0',
    description='User, channel and membership registry for chat servers',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',

    py_modules=[
        'server_model',
        'user_directory',
        'models',
        'input_validator',
        'command_handler',
        'config_manager',
        'dependency_container',
    ],

    install_requires=requirements,
    extras_require={
        'test': ['pytest', 'coverage'],
    },

    python_requires='>=3.8',

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Communications :: Chat',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],

    keywords='irc chat channels registry server',
)

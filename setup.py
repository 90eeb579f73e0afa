from setuptools import find_packages, setup

setup(
    name='dfuserial',
    version='1.0.0',
    description='Serial SLIP transport for nRF-style device firmware update',
    author='isantolin',
    author_email='',
    packages=find_packages(exclude=('tests', 'tests.*')),
    python_requires='>=3.11',
    install_requires=[
        'construct',
        'marshmallow>=3.13',
        'msgspec>=0.18',
        'pyserial',
        'pyserial-asyncio-fast',
        'sliplib>=0.7',
        'tenacity>=8.2',
        'transitions',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
    entry_points={
        'console_scripts': [
            'dfuserial-frame-debug=dfuserial.tools.frame_debug:main',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: POSIX :: Linux',
    ],
)

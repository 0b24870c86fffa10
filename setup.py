from setuptools import setup

torch = ['torch>=1.0.0']
all = torch
test = ['pytest>=6.0.0'] + torch

extras_require = {
    'all': all,
    'torch': torch,
    'test': test
}

setup(
    name='pydarx',
    version='0.1.0',
    packages=['darx', 'darx._hl', 'darx.utils'],
    license='GNU General Public License v3 (GPLv3)',
    description='Data archive format for named, typed tensors',
    python_requires='>=3.7',
    install_requires=[
        'bson>=0.5.7',
        'numpy>=1.12.0'
    ],
    extras_require=extras_require
)

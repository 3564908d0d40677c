#!/usr/bin/env python
"""Setuptools distribution file."""
import os
from setuptools import setup


def _get_here(fname):
    return os.path.join(os.path.dirname(__file__), fname)


def _get_long_description(fname, encoding='utf8'):
    with open(fname, 'r', encoding=encoding) as fin:
        return fin.read()


setup(name='telnetexec',
      version='1.0.0',
      license='ISC',
      description="Execute commands on remote hosts through the Telnet protocol",
      long_description=_get_long_description(fname=_get_here('README.rst')),
      long_description_content_type='text/x-rst',
      packages=['telnetexec', 'telnetexec.tests'],
      python_requires='>=3.8',
      extras_require={
          'test': ['pytest', 'pytest-asyncio', 'pexpect'],
      },
      entry_points={
         'console_scripts': [
             'telnetexec = telnetexec.client:main',
         ]},
      platforms='any',
      zip_safe=True,
      keywords=', '.join(('telnet', 'client', 'remote', 'exec', 'automation',
                          'network', 'cisco', 'router', 'switch')),
      classifiers=['License :: OSI Approved :: ISC License (ISCL)',
                   'Programming Language :: Python :: 3',
                   'Intended Audience :: Developers',
                   'Intended Audience :: System Administrators',
                   'Development Status :: 4 - Beta',
                   'Topic :: System :: Networking',
                   'Topic :: Terminals :: Telnet',
                   'Topic :: Internet',
                   ],
      )

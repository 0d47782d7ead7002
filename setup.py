#!/usr/bin/env python3

import os
import re
import codecs

from setuptools import setup

# Package meta-data.
NAME = 'vinceml'
DESCRIPTION = 'Image-classifier model management, label-folder training data and inference'
AUTHOR = 'Vince Carlo Santos'
LICENSE = 'MIT'
INSTALL_REQUIRES = [
    'pydantic>=2.0',
    'pyyaml',
    'numpy >=1.13.3',
    'Pillow',
    'portalocker>=2.3.0',
]
EXTRAS_REQUIRE = {
    'train': [
        'ultralytics>=8.3',
        'onnx',
        'onnxruntime',
    ],
    'test': [
        'pytest',
    ],
}

here = os.path.abspath(os.path.dirname(__file__))
# read the contents of your README file
with open(os.path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()


def read(*parts):
    with codecs.open(os.path.join(here, *parts), 'r') as fp:
        data = fp.read()
    return data


def find_version(*file_paths):
    version_file = read(*file_paths)
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", version_file, re.M)
    if version_match:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")


setup(name=NAME,
      python_requires='>=3.10',
      version=find_version('vinceml', '__init__.py'),
      description=DESCRIPTION,
      long_description=long_description,
      long_description_content_type='text/markdown',
      author=AUTHOR,
      license=LICENSE,
      install_requires=INSTALL_REQUIRES,
      extras_require=EXTRAS_REQUIRE,
      packages=[
          'vinceml',
          'vinceml.models',
          'vinceml.storage',
          'vinceml.train',
          'vinceml.ml',
          'vinceml.utils',
      ],
      entry_points={
          'console_scripts': ['vinceml=vinceml.__main__:main'],
      },
      )

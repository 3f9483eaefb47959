import os
from setuptools import setup

def read(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as reader:
        return reader.read()

setup(
    name = 'bracketmath',
    version = '0.1',
    description = 'A Python Markdown extension rendering \\(...\\) and \\[...\\] Latex math as MathML.',
    long_description = read('README.md'),
    long_description_content_type = 'text/markdown',
    license = 'MIT',
    keywords = 'markdown latex mathml',
    install_requires = [
        'markdown', 'latex2mathml'
    ],
    extras_require = {
        'test': ['pytest', 'PyHamcrest', 'lxml'],
    },
    packages = [
        'bracketmath', 'bracketmath.lib', 'bracketmath.ext'
    ],
    entry_points = {
        'markdown.extensions': [
            'bracketmath.escaped_brackets = bracketmath.ext.escaped_brackets:EscapedBracketsExtension',
        ]
    },
    classifiers = [
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Education',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Documentation',
        'Topic :: Text Processing :: Markup :: Markdown',
    ]
)

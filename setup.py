import os
from setuptools import setup
from re import match, S

with open(os.path.join('wiki_client', '__init__.py'), 'r') as f:
    contents = f.read()
    longdesc = match('^"""(.*?)"""', contents, S).group(1)
    version = match(r'[\s\S]*__version__[^\'"]+[\'"]([^\'"]+)[\'"]', contents).group(1)
    del contents

setup(
    name="wiki-client",
    version=version,
    description="A MediaWiki, Wikia and Wikibase API client.",
    long_description=longdesc,
    long_description_content_type='text/x-rst',
    license="MIT",
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Internet :: WWW/HTTP :: Dynamic Content :: Wiki',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],
    keywords='mediawiki wikia wikibase api requests',
    packages=["wiki_client"],
    install_requires=['requests', 'beautifulsoup4'],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.7',
)

from setuptools import setup, find_packages

setup(
    name='zbooks_toolbag',
    version='0.1.0',
    packages=find_packages(include=['zbooks_toolbag', 'zbooks_toolbag.*']),
    install_requires=[
        'python-dotenv',
        'pymongo',
        'motor',
        'pydantic>=2',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
    entry_points={
        'console_scripts': [
            'zbooks-queries=zbooks_toolbag.query_runner:main',
            'zbooks-seed=zbooks_toolbag.sample_books:main',
        ],
    },
    include_package_data=True,
    description='Illustrative MongoDB queries, aggregations and indexes over a books collection.',
    author='CentralFloridaAttorney',
    url='https://github.com/CentralFloridaAttorney/zmongo_retriever',
)

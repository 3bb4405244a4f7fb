from setuptools import setup, find_packages

setup(
    name="gmail-rule-repair",
    version="0.1",
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'google-auth-oauthlib>=1.0.0',
        'google-auth-httplib2>=0.1.0',
        'google-api-python-client>=2.86.0',
        'SQLAlchemy>=2.0.19',
        'python-dateutil>=2.8.2',
        'python-dotenv>=1.0.0',
        'pydantic>=2.6.1',
        'structlog>=23.1.0',
        'openai>=1.30.0',
    ],
    extras_require={
        'test': ['pytest>=7.0', 'httpx'],
    },
    entry_points={
        'console_scripts': [
            'rule-repair=src.main:main',
        ],
    },
)

from setuptools import setup, find_packages

setup(
    name="trojangolink",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "python-dotenv>=1.0.0",
        "tqdm>=4.66.1",
        "rich>=13.7.0",
        "qrcode>=8.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'trojangolink=trojangolink.cli:main',
        ],
    },
    author="Marczo",
    description="Convert trojan-go share links to and from trojan-go engine configs.",
    python_requires='>=3.8',
)

from setuptools import setup

setup(
    name="pydiet",
    version="0.1.0",
    author="Varun Bhatnagar",
    author_email="bhatnagarvarun2020@gmail.com",
    description="Compiler for Diet, an indentation based HTML template language",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=['pydiet'],
    python_requires=">=3.7",
    install_requires=[
        "watchdog",
        "pyyaml",
        "markdown",
    ],
    extras_require={
        "test": ["pytest"],
    },
)

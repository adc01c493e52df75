from setuptools import find_packages, setup

setup(
    name="isilonclient",
    packages=find_packages("src"),
    package_dir={"": "src"},
    version="0.1.0",
    license="MIT",
    long_description="",
    long_description_content_type="text/markdown",
    description="A simple wrapper over the Dell PowerScale (Isilon) OneFS API:s",
    keywords=["PowerScale", "Isilon", "OneFS", "API Wrapper"],
    python_requires=">=3.10",
    install_requires=["httpx", "tenacity", "beautifulsoup4"],
    extras_require={"test": ["pytest"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

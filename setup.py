import pathlib
import setuptools

# The directory containing this file
HERE = pathlib.Path(__file__).parent

# The text of the README file
README = (HERE / "README.md").read_text()

# The version of the package
VERSION = (HERE / "oplex" / "VERSION").read_text().strip()

# This call to setup() does all the work
setuptools.setup(
    name="oplex",
    version=VERSION,
    description="Parser and linear expansion engine for OPL optimization models",
    long_description=README,
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Topic :: Scientific/Engineering",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Intended Audience :: Science/Research",
        "Development Status :: 2 - Pre-Alpha",
    ],
    packages=setuptools.find_packages(include=["oplex", "oplex.*"]),
    package_data={"oplex": ["VERSION"]},
    python_requires=">=3.8",
    include_package_data=True,
    install_requires=["numpy>=1.21.2", "ordered-set>=4.0.2"],
    extras_require={"test": ["pytest"]},
)

import setuptools
import importlib.util
import shutil, os

with open("README.md", "r") as fh:
    long_description = fh.read()

with open('requirements.txt') as f:
    requirements = f.read().splitlines()

# Copy oasisledger_cli into the module itself for packaging
shutil.copyfile("oasisledger_cli.py", "pyoasisledger/oasisledger_cli.py")

# load version.py without importing the package (and its dependencies)
version_spec = importlib.util.spec_from_file_location('version', 'pyoasisledger/version.py')
version_module = version = importlib.util.module_from_spec(version_spec)
version_spec.loader.exec_module(version_module)

setuptools.setup(
    name="pyoasisledger",
    version= version.PYOASISLEDGER_VERSION,
    author="The pyoasisledger developers",
    description="Simple python library to communicate with the Oasis app of a Ledger hardware wallet",
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=requirements,
    extras_require={
        "CLI": ["click"],
        "test": ["click"],
    },
    packages=setuptools.find_packages(include=["pyoasisledger", "pyoasisledger.*"]),
    package_dir={
        'pyoasisledger': 'pyoasisledger'
    },
    entry_points={"console_scripts": ["oasisledger-cli=pyoasisledger.oasisledger_cli:main"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.6',
)

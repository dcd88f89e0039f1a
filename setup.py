from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="gmxpipe",
    version="0.1.0",
    author="Balaji M.B.",
    description="Receptor-ligand GROMACS MD workflow runner",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"gmxpipe": ["templates/*.mdp"]},
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "click>=8.0.0",
        "pyyaml>=5.4",
        "numpy>=1.20.0",
        "pandas>=1.2.0",
        "matplotlib>=3.3.0",
        "rich>=10.0.0",
        "questionary>=1.10.0",
        "mdtraj>=1.9.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "gmxpipe=gmxpipe.cli.main:cli",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Topic :: Scientific/Engineering :: Chemistry",
    ],
)

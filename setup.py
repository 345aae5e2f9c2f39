from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

install_requires = [
    # Image I/O and processing
    "numpy>=1.20.0",
    "scipy>=1.7.0",
    "scikit-image>=0.19.0",
    "tifffile>=2023.7.10",
    "matplotlib>=3.5.0",
    # Reports and configuration
    "pandas>=1.4.0",
    "PyYAML>=6.0",
]

extras_require = {
    # GPU thresholding backend (pick the cupy wheel matching your CUDA if needed)
    "gpu": [
        "cupy>=11.0.0",
    ],
    "dev": [
        "pytest>=7.0.0",
        "pytest-cov>=3.0.0",
        "black>=22.0.0",
        "flake8>=4.0.0",
        "mypy>=0.950",
    ],
}

setup(
    name="astrovessel",
    version="0.1.0",
    description="Classification of astrocytes inside and outside blood vessels in 3D confocal stacks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "astrovessel-analyze=astrovessel.cli:main",
        ],
    },
)

import setuptools

with open("README.md", "r") as f:
    readme = f.read()

setuptools.setup(
    name="qntensors",
    version="0.1.0",
    description=(
        "Contraction engine for dense and quantum number conserving "
        "block-sparse tensors."
    ),
    long_description=readme,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages("src"),
    package_dir={"": "src"},
    license="MIT",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering",
    ],
    keywords=["tensor", "tensor networks", "quantum numbers", "contraction"],
    install_requires=["numpy>=1.17", "scipy>=1.0.0"],
    extras_require={"tests": ["pytest", "pytest-randomly", "coverage"]},
    python_requires=">=3.6",
)

"""Set-up file for poreflash for installations using ``pip install .``"""
from setuptools import find_packages, setup


with open("requirements.txt") as f:
    required = f.read().splitlines()


setup(
    name="poreflash",
    version="0.1.0",
    license="GPL",
    keywords=["porous media simulation compositional flash volume variables"],
    install_requires=required,
    extras_require={"testing": ["pytest"]},
    description="Flash-based compositional volume variables for porous media models",
    platforms=["Linux", "Windows", "Mac OS-X"],
    package_data={"poreflash": ["py.typed"]},
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    zip_safe=False,
)

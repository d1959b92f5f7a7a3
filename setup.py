from setuptools import setup, find_packages

setup(
    name="refmatch",
    version="1.0.0",
    description="Reference image identification with ORB feature matching",
    author="refmatch",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    install_requires=[
        "opencv-python>=4.8.0",
        "numpy>=1.24.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.9",
)

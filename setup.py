from setuptools import setup, find_packages

setup(
    name="shapesketch",
    version="0.1.0",
    description="Unsupervised shape inference for text columns: regex, extremes and mergeable shard profiles",
    author="adamfilli",
    packages=find_packages(include=["shapesketch", "shapesketch.*"]),
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": [
            "pytest",
            "matplotlib",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
)

from setuptools import setup, find_packages

setup(
    name="marketplace-ab-testing",
    version="1.0.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "pandas>=1.5.0",
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "streamlit>=1.30.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)

from setuptools import find_packages, setup

setup(
    name="mathsafe",
    version="2.1.0",
    description="Allow-policy filters for URLs, classes, ids, styles, sizes and extensions in untrusted math markup",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=["tinycss2>=1.2"],
    extras_require={
        "test": ["pytest"],
    },
)

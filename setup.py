from setuptools import find_packages, setup

package_name = "tfchain"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test"]),
    package_data={package_name: ["data/*.yaml"]},
    python_requires=">=3.10",
    install_requires=["numpy", "scipy", "pydantic>=2", "PyYAML", "json5"],
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    maintainer="you",
    maintainer_email="you@example.com",
    description="Incremental index of rigid transforms between named coordinate frames",
    license="Apache-2.0",
    entry_points={
        "console_scripts": [
            "tftk = tfchain.cli:main",
        ],
    },
)

from setuptools import setup, find_namespace_packages

setup(
    name="predprey-sim",
    version="0.1",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", exclude=["*.test"]),
    description="Grid-based predator-prey-grass ecosystem engine with discrete ticks, toroidal movement and carrying-capacity feedback.",
    python_requires=">=3.9",
    install_requires=[
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "predprey-sim=predprey_sim.ecology.run:main",
        ],
    },
)

from setuptools import setup, find_packages

setup(
    name="c4rl",
    version="0.2.0",
    description="Connect Four minimax engine and linear TD(lambda) self-play agent",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "gymnasium",
        "filelock",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "c4rl=c4rl.interfaces.cli:main",
        ],
    },
)

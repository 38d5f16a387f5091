from setuptools import setup, find_packages

setup(
    name="imgverb",
    version="0.1.0",
    description="Per-pixel expression, warp and row-reverb effects for video frames",
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "Pillow>=10.0",
        "moviepy>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "imgverb=imgverb.cli:main",
        ],
    },
)

from setuptools import setup, find_packages

setup(
    name="kernel-validation-harness",
    version="0.1.0",
    description="Correctness harness for accelerated neural-network kernels",
    author="Research Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "torch>=1.10.0",
        "numpy>=1.20.0",
    ],
    extras_require={
        "test": ["pytest>=6.0.0"],
    },
    entry_points={
        "console_scripts": [
            "kernel-harness=kernel_harness.runner:main",
        ],
    },
    python_requires=">=3.7",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)

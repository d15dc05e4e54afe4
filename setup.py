from setuptools import setup, find_packages

setup(
    name="queuelab",
    version="0.1.0",
    description="Single-server request queue simulation: FIFO, LIFO and adaptive LIFO under client timeouts",
    author="adamfilli",
    packages=find_packages(include=["queuelab", "queuelab.*"]),
    install_requires=[
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)

from setuptools import setup

setup(
    name="pvc-ignvol",
    version="0.9.1",
    packages=["ignvol.cli", "ignvol.lib"],
    install_requires=[
        "Click",
        "PyYAML",
        "lxml",
        "colorama",
    ],
    extras_require={
        "libvirt": ["libvirt-python"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "ignvol = ignvol.cli.cli:cli",
        ],
    },
)

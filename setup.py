from setuptools import setup, find_packages

setup(
    name="nodemcu_cli",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "esptool==4.8.1", # provides esptool.py, used to flash the firmware images
        "nodemcu-uploader==0.4.3", # used by 'nodemcu upload'
        "pyserial>=3.5", # serial.tools.list_ports is part of pyserial
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "nodemcu=nodemcu_cli.cli:main",
        ],
    },
    include_package_data=True,
)

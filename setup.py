from setuptools import find_packages, setup
import os
from glob import glob

package_name = "lazyros"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test"]),
    data_files=[
        ("share/ament_index/resource_index/packages", ["resource/" + package_name]),
        ("share/" + package_name, ["package.xml"]),
        (os.path.join("share", package_name, "launch"), glob("launch/*.launch.py")),
        (os.path.join("share", package_name, "config"), glob("config/*.yaml")),
    ],
    install_requires=["setuptools", "PyYAML"],
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    maintainer="lazyros developers",
    maintainer_email="lazyros@users.noreply.github.com",
    description="A keyboard-driven curses dashboard for a running ROS2 graph",
    license="MIT",
    tests_require=["pytest"],
    entry_points={
        "console_scripts": [
            "lazyros = lazyros.main:main",
        ],
    },
)

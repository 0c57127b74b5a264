
import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name = "pygevcam",
    version = "2024.3.1",
    description = "GenICam / GigE Vision camera examples over Aravis, with a simulated camera",
    long_description = long_description,
    long_description_content_type = "text/markdown",
    classifiers = [
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
    ],
    packages = setuptools.find_packages(where=".", include=["pygevcam", "pygevcam.*"]),
    package_dir = {"":"."},
    python_requires = ">=3.8",
    install_requires=[
          'numpy',
          'PyGObject',
          'astropy',
          'toml',
          'tomli',
          'PyYAML',
          'h5py',
          'opencv-python',
          'loguru',
      ],
    extras_require = {
        "test": ["pytest"],
    },
    entry_points = {
        "console_scripts": [
            "gev_example=pygevcam.bin:example",
            "gev_config=pygevcam.bin:gige_config",
                            ],
    },
)

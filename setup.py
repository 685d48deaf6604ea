from setuptools import find_packages, setup


APP_NAME = "stackview"
APP_VERSION = "0.4.0"
APP_DESCRIPTION = "Stacked 3D viewer and editor for Android UI element dumps"

install_requires = [
    "numpy",
    "pyvista",
    "pyvistaqt",
    "PySide6",
    "Pillow",
]

extras_require = {
    "test": ["pytest"],
}

setup(
    name=APP_NAME,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
    packages=find_packages(include=["stackview", "stackview.*"]),
    py_modules=["app"],
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={"console_scripts": ["stackview=app:main"]},
)

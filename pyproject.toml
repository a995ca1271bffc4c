[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fbxkit"
version = "0.7.0"
description = "Build FBX node trees and write them as FBX 7.x binary files"
requires-python = ">=3.10"
dependencies = []
keywords = ["fbx", "3d", "model", "binary", "writer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: 3D Modeling",
    "Topic :: File Formats",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fbxkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
